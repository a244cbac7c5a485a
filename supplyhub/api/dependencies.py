"""
Shared dependencies for the API routers.
"""
from supplyhub.core.config import settings
from supplyhub.domain.imports.uploads import TemporaryFileStore


def get_file_store() -> TemporaryFileStore:
    """Temporary upload store configured from settings."""
    return TemporaryFileStore(
        upload_dir=settings.upload_dir,
        max_bytes=settings.upload_max_file_size_mb * 1024 * 1024,
    )
