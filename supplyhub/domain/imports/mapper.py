"""
Turn parsed CSV rows into candidate documents for one entity kind.

Mapping never raises for bad data: each row yields a ``MappingResult`` that
holds either the candidate or the reason it was rejected, so one malformed
row never stops the rest of the file from being attempted.
"""
import logging
from typing import Iterable, List

from .entities import CoercionError, EntityMapping
from .outcome import MappingResult, mapping_error
from .parser import RawRecord

logger = logging.getLogger(__name__)


def map_one(record: RawRecord, mapping: EntityMapping) -> MappingResult:
    """
    Build the candidate document for ``record``.

    Headers that are not in the mapping table are ignored. Blank or missing
    cells fall back to the field default and are left out of the candidate
    when that is None too; the storage layer decides whether that is
    acceptable.
    """
    if record.is_ragged:
        return MappingResult(
            index=record.index,
            error=mapping_error(
                record.index,
                f"Row has {record.width} columns but the header has {record.expected_width}",
            ),
        )

    document = {}
    for spec in mapping.fields:
        raw_value = record.values.get(spec.source)
        value = None
        if raw_value is not None:
            try:
                value = spec.coerce(raw_value)
            except CoercionError as exc:
                return MappingResult(
                    index=record.index,
                    error=mapping_error(record.index, f"Invalid {spec.source}: {exc}", spec.target),
                )
        if value is None:
            value = spec.default
        if value is not None:
            document[spec.target] = value

    return MappingResult(index=record.index, document=document)


def map_records(records: Iterable[RawRecord], mapping: EntityMapping) -> List[MappingResult]:
    """Map every record, consuming the iterable fully before returning."""
    results = [map_one(record, mapping) for record in records]
    rejected = sum(1 for result in results if not result.ok)
    if rejected:
        logger.info("Mapping rejected %d of %d %s rows", rejected, len(results), mapping.label)
    return results
