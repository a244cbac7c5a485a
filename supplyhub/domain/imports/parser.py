"""
Header-based CSV reader for batch imports.

The first row names the columns; every later row becomes one ``RawRecord``
keyed by those names. Only problems with the file as a whole (unreadable,
undecodable, no usable header) raise ``ParseError``. A row whose cell count
differs from the header is still yielded, padded or truncated, and flagged
so the mapper can reject just that row.
"""
import csv
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List

from .errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawRecord:
    index: int  # 1-based data row number, header excluded
    values: Dict[str, str]
    width: int
    expected_width: int

    @property
    def is_ragged(self) -> bool:
        return self.width != self.expected_width


def _read_header(reader, path: str) -> List[str]:
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue
        header = [cell.strip() for cell in row]
        if any(not name for name in header):
            raise ParseError(f"Header row of '{path}' contains a blank column name", path=path)
        duplicates = sorted({name for name in header if header.count(name) > 1})
        if duplicates:
            raise ParseError(f"Header row of '{path}' repeats column names: {duplicates}", path=path)
        return header
    raise ParseError(f"File '{path}' is empty; expected a header row", path=path)


def parse_records(path: str) -> Iterator[RawRecord]:
    """
    Yield one ``RawRecord`` per data row of the CSV at ``path``, in file order.

    The returned iterator is single-pass. Blank lines are skipped and do not
    consume a row number. A row whose cells are all empty or whitespace
    (``,,`` as spreadsheet exports write after the last record) counts as a
    blank line, even when its cell count differs from the header.

    Raises:
        ParseError: the file cannot be opened or decoded, the CSV tokenizer
            rejects it, or the header row is missing or unusable.
    """
    try:
        handle = open(path, "r", encoding="utf-8-sig", newline="")
    except OSError as exc:
        raise ParseError(f"Could not open uploaded file '{path}': {exc}", path=path) from exc

    with handle:
        reader = csv.reader(handle)
        try:
            header = _read_header(reader, path)
            expected_width = len(header)
            index = 0
            for row in reader:
                if not row or not any(cell.strip() for cell in row):
                    continue
                index += 1
                padded = row[:expected_width] + [""] * (expected_width - len(row))
                yield RawRecord(
                    index=index,
                    values=dict(zip(header, padded)),
                    width=len(row),
                    expected_width=expected_width,
                )
        except UnicodeDecodeError as exc:
            raise ParseError(f"File '{path}' is not valid UTF-8 text: {exc}", path=path) from exc
        except csv.Error as exc:
            raise ParseError(f"Malformed CSV in '{path}' near line {reader.line_num}: {exc}", path=path) from exc

    logger.debug("Parsed %d data rows from %s", index, path)
