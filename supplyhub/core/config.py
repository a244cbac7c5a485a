from typing import List

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./supplyhub.db"
    log_level: str = "INFO"

    # Temporary upload storage for batch imports
    upload_dir: str = "uploads"
    upload_max_file_size_mb: int = 10
    import_allowed_roles: List[str] = ["admin"]

    # Authentication
    secret_key: str = "your-secret-key-change-in-production"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
