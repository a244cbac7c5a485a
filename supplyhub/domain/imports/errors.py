"""
Fatal errors raised by the batch import pipeline.

Each carries the HTTP status the API layer should answer with. Per-record
problems are not exceptions; they travel as ``ImportFailure`` values inside
the import outcome.
"""
from typing import Optional


class ImportPipelineError(Exception):
    """Base class for errors that abort an import before anything is written."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NoFileProvided(ImportPipelineError):
    """Raised when an import request arrives without an uploaded file."""

    status_code = 400

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "No file uploaded")


class UnsupportedFileType(ImportPipelineError):
    status_code = 400

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Unsupported file type for '{file_name}'. Upload a .csv file.")


class UploadTooLarge(ImportPipelineError):
    status_code = 413

    def __init__(self, file_name: str, limit_bytes: int):
        self.file_name = file_name
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File '{file_name}' exceeds the upload limit of {limit_bytes // (1024 * 1024)} MB."
        )


class ParseError(ImportPipelineError):
    """Raised when an uploaded file cannot be read or has no usable header."""

    status_code = 422

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class ImportConfigurationError(ImportPipelineError):
    """Raised at startup when an entity mapping table disagrees with its model."""

    status_code = 500
