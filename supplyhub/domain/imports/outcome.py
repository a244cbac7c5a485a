"""Per-record results and the aggregated outcome of one batch import."""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

MAPPING_STAGE = "mapping"
WRITE_STAGE = "write"


@dataclass(frozen=True)
class ImportFailure:
    """
    Why one record (or, when ``index`` is None, a group of records) was not imported.

    ``index`` is the 1-based data row in the uploaded file. Aggregate entries
    have no index and report how many documents they cover in ``count``.
    """
    index: Optional[int]
    reason: str
    stage: str = WRITE_STAGE
    field: Optional[str] = None
    count: int = 1

    @property
    def is_aggregate(self) -> bool:
        return self.index is None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "reason": self.reason,
            "stage": self.stage,
            "field": self.field,
            "count": self.count,
        }


def mapping_error(index: int, reason: str, field_name: Optional[str] = None) -> ImportFailure:
    return ImportFailure(index=index, reason=reason, stage=MAPPING_STAGE, field=field_name)


@dataclass(frozen=True)
class MappingResult:
    """Either a candidate document or the mapping error for one row."""
    index: int
    document: Optional[Dict[str, Any]] = None
    error: Optional[ImportFailure] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure_sort_key(failure: ImportFailure):
    # Row-attributed failures first in file order, aggregates last.
    return (failure.index is None, failure.index or 0)


@dataclass
class ImportOutcome:
    attempted_count: int
    inserted_count: int
    failures: List[ImportFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return sum(failure.count for failure in self.failures)

    @property
    def unaccounted_count(self) -> int:
        """Records neither inserted nor named by a failure entry."""
        return self.attempted_count - self.inserted_count - self.failed_count

    def combined_with(self, earlier_failures: Iterable[ImportFailure], attempted_count: int) -> "ImportOutcome":
        """Fold failures from an earlier stage into this outcome over ``attempted_count`` records."""
        failures = sorted([*earlier_failures, *self.failures], key=_failure_sort_key)
        return ImportOutcome(
            attempted_count=attempted_count,
            inserted_count=self.inserted_count,
            failures=failures,
        )
