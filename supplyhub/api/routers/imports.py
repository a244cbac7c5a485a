"""
Batch import endpoints: one per entity kind, each taking a single CSV upload.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from supplyhub.api.dependencies import get_file_store
from supplyhub.api.schemas.imports import (
    ImportFailureDetail,
    ImportFormatsResponse,
    ImportSummaryResponse,
)
from supplyhub.core.config import settings
from supplyhub.core.security import Identity, require_roles
from supplyhub.db.session import get_db
from supplyhub.domain.imports.entities import ENTITY_MAPPINGS, EntityKind
from supplyhub.domain.imports.errors import ImportPipelineError
from supplyhub.domain.imports.orchestrator import ImportRequest, ImportSummary, run_import
from supplyhub.domain.imports.uploads import TemporaryFileStore

router = APIRouter(prefix="/api/import", tags=["imports"])

logger = logging.getLogger(__name__)

require_importer = require_roles(settings.import_allowed_roles)


def _summary_response(summary: ImportSummary) -> ImportSummaryResponse:
    outcome = summary.outcome
    return ImportSummaryResponse(
        message=summary.message,
        attempted=outcome.attempted_count,
        inserted=outcome.inserted_count,
        failed=outcome.failed_count,
        failures=[ImportFailureDetail(**failure.as_dict()) for failure in outcome.failures],
    )


@router.get("/formats", response_model=ImportFormatsResponse)
def list_import_formats():
    """Expected CSV header row for each entity kind."""
    return ImportFormatsResponse(
        formats={kind.value: list(mapping.headers) for kind, mapping in ENTITY_MAPPINGS.items()}
    )


@router.post("/{kind}", response_model=ImportSummaryResponse)
def import_records(
    kind: EntityKind,
    file: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_importer),
    db: Session = Depends(get_db),
    store: TemporaryFileStore = Depends(get_file_store),
):
    """
    Import records of one entity kind from a CSV upload.

    Rows that fail mapping or are rejected by storage are reported in
    ``failures``; the rest are inserted. A missing or unreadable file is an
    error response and nothing is written.
    """
    logger.info("Received /api/import/%s request for file '%s'", kind.value, getattr(file, "filename", None))
    try:
        summary = run_import(ImportRequest(kind=kind.value, upload=file, identity=identity), db, store)
    except ImportPipelineError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error importing {kind.value}: {e}") from e

    return _summary_response(summary)
