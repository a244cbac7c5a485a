import pytest

from supplyhub.domain.imports.errors import ParseError
from supplyhub.domain.imports.parser import parse_records


def test_parse_records_maps_rows_onto_header_in_order(write_csv):
    path = write_csv("Name,State,District\nAlpha,Kerala,Idukki\nBeta,Goa,North Goa\n")

    records = list(parse_records(path))

    assert [record.index for record in records] == [1, 2]
    assert records[0].values == {"Name": "Alpha", "State": "Kerala", "District": "Idukki"}
    assert records[1].values["District"] == "North Goa"
    assert not any(record.is_ragged for record in records)


def test_parse_records_header_only_yields_nothing(write_csv):
    path = write_csv("Name,State,District\n")

    assert list(parse_records(path)) == []


def test_parse_records_strips_bom_and_header_whitespace(write_csv):
    path = write_csv(b"\xef\xbb\xbf Name , State ,District\nAlpha,Kerala,Idukki\n")

    records = list(parse_records(path))

    assert list(records[0].values) == ["Name", "State", "District"]


def test_parse_records_keeps_quoted_commas(write_csv):
    path = write_csv('Name,Address\n"Acme, Ltd.","12 Main St, Pune"\n')

    (record,) = parse_records(path)

    assert record.values == {"Name": "Acme, Ltd.", "Address": "12 Main St, Pune"}


def test_parse_records_skips_blank_lines_without_consuming_row_numbers(write_csv):
    path = write_csv("Name,State\n\nAlpha,Kerala\n,\nBeta,Goa\n")

    records = list(parse_records(path))

    assert [(r.index, r.values["Name"]) for r in records] == [(1, "Alpha"), (2, "Beta")]


def test_parse_records_treats_rows_of_empty_cells_as_blank_lines(write_csv):
    path = write_csv("Name,State,District\nAlpha,Kerala,Idukki\n,,\n , ,\n,,,,\nBeta,Goa,North Goa\n,,\n")

    records = list(parse_records(path))

    assert [(r.index, r.values["Name"]) for r in records] == [(1, "Alpha"), (2, "Beta")]
    assert not any(record.is_ragged for record in records)


def test_parse_records_flags_ragged_rows_instead_of_failing(write_csv):
    path = write_csv("Name,State,District\nAlpha,Kerala\nBeta,Goa,North Goa,extra\nGamma,Assam,Kamrup\n")

    short_row, long_row, good_row = parse_records(path)

    assert short_row.is_ragged and short_row.width == 2
    assert short_row.values == {"Name": "Alpha", "State": "Kerala", "District": ""}
    assert long_row.is_ragged and long_row.width == 4
    assert long_row.values == {"Name": "Beta", "State": "Goa", "District": "North Goa"}
    assert not good_row.is_ragged


def test_parse_records_is_single_pass(write_csv):
    path = write_csv("Name\nAlpha\nBeta\n")

    records = parse_records(path)

    assert len(list(records)) == 2
    assert list(records) == []


def test_parse_records_missing_file_raises_parse_error(tmp_path):
    with pytest.raises(ParseError):
        list(parse_records(str(tmp_path / "missing.csv")))


def test_parse_records_empty_file_raises_parse_error(write_csv):
    path = write_csv("")

    with pytest.raises(ParseError, match="header"):
        list(parse_records(path))


def test_parse_records_rejects_duplicate_header_names(write_csv):
    path = write_csv("Name,Name\nAlpha,Beta\n")

    with pytest.raises(ParseError, match="repeats"):
        list(parse_records(path))


def test_parse_records_rejects_blank_header_names(write_csv):
    path = write_csv("Name,,State\nAlpha,x,Goa\n")

    with pytest.raises(ParseError, match="blank"):
        list(parse_records(path))


def test_parse_records_rejects_undecodable_bytes(write_csv):
    path = write_csv(b"Name,State\n\xff\xfe\xfa,Goa\n")

    with pytest.raises(ParseError, match="UTF-8"):
        list(parse_records(path))
