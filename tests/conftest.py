"""
Pytest configuration and fixtures for SupplyHub tests.

Each test gets a fresh in-memory SQLite database and its own upload
directory; the FastAPI app is wired to both through dependency overrides.
"""

import os

os.environ["SKIP_DB_INIT"] = "1"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from supplyhub.api.dependencies import get_file_store
from supplyhub.core.security import create_access_token, create_user
from supplyhub.db import models  # noqa: F401  (registers entity tables on Base)
from supplyhub.db.session import Base, build_engine, get_db
from supplyhub.domain.imports.uploads import TemporaryFileStore
from supplyhub.main import app


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def file_store(upload_dir):
    return TemporaryFileStore(upload_dir=str(upload_dir), max_bytes=1024 * 1024)


@pytest.fixture
def client(session_factory, file_store):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_file_store] = lambda: file_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session):
    """Create users directly via the ORM and hand back bearer headers for them."""

    def _create_user(*, role: str = "admin", email: str = None) -> dict:
        email = email or f"{role}@example.com"
        user = create_user(
            db=db_session,
            email=email,
            password="Password123!",
            full_name="Pytest User",
            role=role,
        )
        token = create_access_token({"sub": user.email})
        # Requests share the in-memory connection; leave no transaction open.
        db_session.commit()
        return {"user": user, "headers": {"Authorization": f"Bearer {token}"}}

    return _create_user


@pytest.fixture
def admin_headers(user_factory):
    return user_factory(role="admin")["headers"]


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file outside the upload directory and return its path."""

    def _write(text: str, name: str = "records.csv", encoding: str = "utf-8") -> str:
        path = tmp_path / name
        path.write_bytes(text.encode(encoding) if isinstance(text, str) else text)
        return str(path)

    return _write
