from decimal import Decimal

from sqlalchemy.exc import OperationalError

from supplyhub.db.models import Product, School
from supplyhub.domain.imports.writer import describe_write_error, insert_many


def _schools(*names):
    return [
        (index, {"name": name, "state": "Kerala", "district": "Idukki"})
        for index, name in enumerate(names, start=1)
    ]


def test_insert_many_inserts_every_valid_candidate(db_session):
    outcome = insert_many(db_session, School, _schools("Alpha", "Beta", "Gamma"))

    assert outcome.attempted_count == 3
    assert outcome.inserted_count == 3
    assert outcome.failures == []
    assert db_session.query(School).count() == 3


def test_insert_many_continues_past_a_uniqueness_violation(db_session):
    db_session.add(School(name="Beta", state="Goa", district="North Goa"))
    db_session.commit()

    outcome = insert_many(db_session, School, _schools("Alpha", "Beta", "Gamma"))

    assert outcome.inserted_count == 2
    assert len(outcome.failures) == 1
    failure = outcome.failures[0]
    assert failure.index == 2
    assert failure.reason.startswith("uniqueness violation")
    assert failure.field == "name"
    names = sorted(name for (name,) in db_session.query(School.name))
    assert names == ["Alpha", "Beta", "Gamma"]


def test_duplicates_within_the_same_batch_fail_individually(db_session):
    outcome = insert_many(db_session, School, _schools("Alpha", "Alpha", "Beta", "Alpha"))

    assert outcome.inserted_count == 2
    assert [failure.index for failure in outcome.failures] == [2, 4]


def test_missing_required_field_is_reported_by_storage(db_session):
    candidates = [
        (1, {"name": "Alpha", "state": "Kerala"}),
        (2, {"name": "Beta", "state": "Goa", "district": "North Goa"}),
    ]

    outcome = insert_many(db_session, School, candidates)

    assert outcome.inserted_count == 1
    assert outcome.failures[0].index == 1
    assert outcome.failures[0].reason.startswith("missing required field")
    assert outcome.failures[0].field == "district"


def test_insert_many_with_no_candidates_is_an_empty_outcome(db_session):
    outcome = insert_many(db_session, Product, [])

    assert (outcome.attempted_count, outcome.inserted_count, outcome.failures) == (0, 0, [])


def test_commit_failure_becomes_one_aggregate_failure(db_session, monkeypatch):
    db_session.add(School(name="Beta", state="Goa", district="North Goa"))
    db_session.commit()

    def _failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", _failing_commit)

    outcome = insert_many(db_session, School, _schools("Alpha", "Beta", "Gamma"))

    assert outcome.inserted_count == 0
    assert [f.index for f in outcome.failures] == [2, None]
    aggregate = outcome.failures[-1]
    assert aggregate.count == 2
    assert "database is locked" in aggregate.reason
    assert outcome.failed_count == 3
    assert outcome.unaccounted_count == 0


def test_error_outside_a_row_savepoint_rolls_back_the_whole_batch(db_session, monkeypatch):
    real_begin_nested = db_session.begin_nested
    calls = []

    def _begin_nested():
        calls.append(1)
        if len(calls) == 2:
            raise OperationalError("SAVEPOINT", {}, Exception("disk I/O error"))
        return real_begin_nested()

    monkeypatch.setattr(db_session, "begin_nested", _begin_nested)

    outcome = insert_many(db_session, School, _schools("Alpha", "Beta", "Gamma"))

    assert outcome.attempted_count == 3
    assert outcome.inserted_count == 0
    assert len(outcome.failures) == 1
    aggregate = outcome.failures[0]
    assert aggregate.index is None
    assert aggregate.count == 3
    assert "disk I/O error" in aggregate.reason
    assert outcome.unaccounted_count == 0
    monkeypatch.undo()
    assert db_session.query(School).count() == 0


def test_products_store_decimal_prices(db_session):
    outcome = insert_many(
        db_session,
        Product,
        [(1, {"name": "Desk", "category": "Furniture", "price": Decimal("1250.50")})],
    )

    assert outcome.inserted_count == 1
    assert db_session.query(Product).one().price == Decimal("1250.50")


def test_describe_write_error_classifies_postgres_messages():
    class _Orig(Exception):
        pass

    exc = Exception()
    exc.orig = _Orig('duplicate key value violates unique constraint "vendors_email_key"\nDETAIL: Key (email)=(a@b.co) already exists.')

    reason = describe_write_error(exc)

    assert reason.startswith("uniqueness violation: duplicate key value")
    assert "\n" not in reason
