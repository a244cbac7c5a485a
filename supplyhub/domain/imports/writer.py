"""
Unordered bulk insert of candidate documents.

Every candidate is attempted inside its own SAVEPOINT, so a constraint
violation rolls back only that record and the loop carries on with the
next one. Failures the database attributes to a single statement are
reported against that row; anything that takes the whole batch down is
reported as one aggregate failure with the database message preserved.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .outcome import WRITE_STAGE, ImportFailure, ImportOutcome

logger = logging.getLogger(__name__)

Candidate = Tuple[int, Dict[str, Any]]

# "UNIQUE constraint failed: schools.name" (sqlite) / "Key (name)=(...)" (postgres)
_SQLITE_COLUMN = re.compile(r"constraint failed: \w+\.(\w+)")
_POSTGRES_COLUMN = re.compile(r'Key \((\w+)\)=|column "(\w+)"')


def _database_message(exc: Exception) -> str:
    message = str(getattr(exc, "orig", None) or exc)
    return " ".join(message.split())


def _offending_column(message: str) -> Optional[str]:
    match = _SQLITE_COLUMN.search(message)
    if match:
        return match.group(1)
    match = _POSTGRES_COLUMN.search(message)
    if match:
        return match.group(1) or match.group(2)
    return None


def describe_write_error(exc: Exception) -> str:
    """Classify a per-record database error into a human-readable reason."""
    message = _database_message(exc)
    lowered = message.lower()
    if isinstance(exc, DataError):
        category = "invalid value"
    elif "unique" in lowered or "duplicate key" in lowered:
        category = "uniqueness violation"
    elif "not null" in lowered or "not-null" in lowered:
        category = "missing required field"
    else:
        category = "integrity error"
    return f"{category}: {message}"


def _aggregate_failure(exc: Exception, count: int) -> ImportFailure:
    return ImportFailure(
        index=None,
        reason=f"batch write failed: {_database_message(exc)}",
        stage=WRITE_STAGE,
        count=count,
    )


def insert_many(session: Session, model: Type, candidates: Sequence[Candidate]) -> ImportOutcome:
    """
    Insert ``candidates`` into ``model``'s table without stopping at the first failure.

    Args:
        session: Session whose transaction receives the inserts; committed here.
        model: ORM class to instantiate for each document.
        candidates: ``(row_index, document)`` pairs in file order.

    Returns:
        ImportOutcome over ``len(candidates)`` attempts. ``inserted_count``
        only counts rows that were committed.
    """
    attempted = len(candidates)
    failures: List[ImportFailure] = []
    flushed = 0

    if not candidates:
        return ImportOutcome(attempted_count=0, inserted_count=0)

    try:
        for index, document in candidates:
            try:
                with session.begin_nested():
                    session.add(model(**document))
            except (IntegrityError, DataError) as exc:
                reason = describe_write_error(exc)
                logger.debug("Row %d rejected by storage: %s", index, reason)
                failures.append(
                    ImportFailure(
                        index=index,
                        reason=reason,
                        stage=WRITE_STAGE,
                        field=_offending_column(_database_message(exc)),
                    )
                )
                continue
            flushed += 1
    except SQLAlchemyError as exc:
        session.rollback()
        unconfirmed = attempted - len(failures)
        logger.error("Bulk insert into %s aborted; %d records not written: %s", model.__tablename__, unconfirmed, exc)
        return ImportOutcome(
            attempted_count=attempted,
            inserted_count=0,
            failures=failures + [_aggregate_failure(exc, unconfirmed)],
        )

    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Commit of %d %s records failed: %s", flushed, model.__tablename__, exc)
        return ImportOutcome(
            attempted_count=attempted,
            inserted_count=0,
            failures=failures + [_aggregate_failure(exc, flushed)],
        )

    return ImportOutcome(attempted_count=attempted, inserted_count=flushed, failures=failures)
