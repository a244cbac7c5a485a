from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ImportFailureDetail(BaseModel):
    """One row (or group of rows) that did not make it into storage."""
    index: Optional[int] = Field(None, description="1-based data row in the uploaded file; null for aggregate failures")
    reason: str
    stage: str = Field(..., description="'mapping' or 'write'")
    field: Optional[str] = None
    count: int = 1


class ImportSummaryResponse(BaseModel):
    message: str
    attempted: int
    inserted: int
    failed: int
    failures: List[ImportFailureDetail] = []


class ImportFormatsResponse(BaseModel):
    formats: Dict[str, List[str]]
