"""
Batch import orchestration.

One request walks ``Idle -> FileAcquired -> Parsed -> Mapped -> Written ->
Cleaned``. Any step can end the walk early; the uploaded file is released
on every path before the summary (or the error) reaches the caller.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlalchemy.orm import Session

from supplyhub.core.security import Identity
from .entities import EntityMapping, get_entity_mapping
from .errors import ImportPipelineError, NoFileProvided, UnsupportedFileType
from .mapper import map_records
from .outcome import WRITE_STAGE, ImportFailure, ImportOutcome
from .parser import parse_records
from .uploads import IncomingUpload, TemporaryFileStore
from .writer import insert_many

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv",)


class ImportState(str, Enum):
    IDLE = "idle"
    FILE_ACQUIRED = "file_acquired"
    PARSED = "parsed"
    MAPPED = "mapped"
    WRITTEN = "written"
    CLEANED = "cleaned"


@dataclass(frozen=True)
class ImportRequest:
    kind: str
    upload: Optional[IncomingUpload]
    identity: Optional[Identity] = None


@dataclass
class ImportSummary:
    kind: str
    outcome: ImportOutcome
    file_name: str
    duration_seconds: float = 0.0

    @property
    def failures(self) -> List[ImportFailure]:
        return self.outcome.failures

    @property
    def message(self) -> str:
        outcome = self.outcome
        text = f"{outcome.inserted_count} of {outcome.attempted_count} {self.kind} imported successfully."
        if outcome.failed_count:
            text += f" {outcome.failed_count} failed."
        return text


def _check_upload(upload: Optional[IncomingUpload]) -> IncomingUpload:
    if upload is None or not getattr(upload, "filename", None):
        raise NoFileProvided()
    if not upload.filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise UnsupportedFileType(upload.filename)
    return upload


class ImportRun:
    """Tracks the state of one import request for logging."""

    def __init__(self, mapping: EntityMapping, actor: str):
        self.mapping = mapping
        self.actor = actor
        self.state = ImportState.IDLE

    def advance(self, state: ImportState) -> None:
        logger.debug("%s import by %s: %s -> %s", self.mapping.label, self.actor, self.state.value, state.value)
        self.state = state


def run_import(request: ImportRequest, session: Session, store: TemporaryFileStore) -> ImportSummary:
    """
    Import the uploaded CSV into the entity table for ``request.kind``.

    Raises:
        NoFileProvided: no upload was attached; nothing is stored or parsed.
        UnsupportedFileType: the upload is not a ``.csv`` file.
        UploadTooLarge: the upload exceeds the store's size limit.
        ParseError: the stored file could not be read; nothing is written.
    """
    mapping = get_entity_mapping(request.kind)
    upload = _check_upload(request.upload)
    actor = request.identity.email if request.identity else "anonymous"
    run = ImportRun(mapping, actor)
    started = time.perf_counter()

    logger.info("Starting %s import of '%s' requested by %s", mapping.label, upload.filename, actor)

    try:
        with store.held(upload) as stored:
            run.advance(ImportState.FILE_ACQUIRED)

            records = list(parse_records(stored.storage_path))
            run.advance(ImportState.PARSED)

            results = map_records(records, mapping)
            run.advance(ImportState.MAPPED)

            mapping_failures = [result.error for result in results if not result.ok]
            candidates = [(result.index, result.document) for result in results if result.ok]
            written = insert_many(session, mapping.model, candidates)
            run.advance(ImportState.WRITTEN)
    except ImportPipelineError as exc:
        run.advance(ImportState.CLEANED)
        logger.warning("%s import of '%s' aborted: %s", mapping.label, upload.filename, exc.message)
        raise
    except Exception:
        run.advance(ImportState.CLEANED)
        logger.exception("%s import of '%s' failed", mapping.label, upload.filename)
        raise
    run.advance(ImportState.CLEANED)

    outcome = written.combined_with(mapping_failures, attempted_count=len(results))
    unaccounted = outcome.unaccounted_count
    if unaccounted > 0:
        logger.warning(
            "%s import of '%s': storage accounted for %d of %d candidates",
            mapping.label,
            stored.original_name,
            len(candidates) - unaccounted,
            len(candidates),
        )
        outcome.failures.append(
            ImportFailure(
                index=None,
                reason=f"{unaccounted} record(s) were neither inserted nor reported as failed by storage",
                stage=WRITE_STAGE,
                count=unaccounted,
            )
        )
    for failure in outcome.failures:
        logger.warning(
            "%s row %s not imported (%s): %s",
            mapping.label,
            f"* x{failure.count}" if failure.is_aggregate else failure.index,
            failure.stage,
            failure.reason,
        )

    summary = ImportSummary(
        kind=mapping.label,
        outcome=outcome,
        file_name=stored.original_name,
        duration_seconds=time.perf_counter() - started,
    )
    logger.info(
        "Finished %s import of '%s': %d attempted, %d inserted, %d failed in %.2fs",
        mapping.label,
        stored.original_name,
        outcome.attempted_count,
        outcome.inserted_count,
        outcome.failed_count,
        summary.duration_seconds,
    )
    return summary
