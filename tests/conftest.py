"""
Pytest configuration - shared fixtures
"""
import io
import os
import tempfile
from pathlib import Path
from typing import Generator

# Must be set before app modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PUBLIC_DIR", tempfile.mkdtemp(prefix="catalog-public-"))

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.dependencies import get_asset_store
from app.main import app
from app.models import Category, Item
from app.services import auth
from app.services.asset_store import AssetStore, StagedUpload, FIELD_NEW_IMAGES, FIELD_PRODUCT_FILE, IMAGES, FILES
from app.services.record_store import RecordStore
from app.config import get_settings


def png_bytes(color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session) -> RecordStore:
    return RecordStore(db_session)


@pytest.fixture
def asset_store(tmp_path) -> AssetStore:
    store = AssetStore(tmp_path / "public")
    store.ensure_directories()
    return store


@pytest.fixture
def stage_image(asset_store):
    """Write an image into the images directory as the upload handler would."""
    def _stage(original_name: str = "shot.png") -> StagedUpload:
        target = asset_store.allocate(IMAGES, Path(original_name).suffix)
        target.write_bytes(png_bytes())
        return StagedUpload(field=FIELD_NEW_IMAGES, original_name=original_name, stored_path=target)
    return _stage


@pytest.fixture
def stage_file(asset_store):
    def _stage(original_name: str = "pack.zip", data: bytes = b"PK\x03\x04") -> StagedUpload:
        target = asset_store.allocate(FILES, Path(original_name).suffix)
        target.write_bytes(data)
        return StagedUpload(field=FIELD_PRODUCT_FILE, original_name=original_name, stored_path=target)
    return _stage


@pytest.fixture
def stored_image(asset_store, stage_image):
    """A committed image: returns its logical path."""
    def _store() -> str:
        return asset_store.store(stage_image())
    return _store


@pytest.fixture
def stored_file(asset_store, stage_file):
    def _store(original_name: str = "pack.zip", data: bytes = b"PK\x03\x04") -> str:
        return asset_store.store(stage_file(original_name, data))
    return _store


@pytest.fixture
def make_item(store):
    def _make(name: str, **values) -> Item:
        values.setdefault("slug", name.lower().replace(" ", "-"))
        values.setdefault("title", name)
        return store.insert(Item, name=name, **values)
    return _make


@pytest.fixture
def make_category(store):
    def _make(name: str, **values) -> Category:
        values.setdefault("slug", name.lower().replace(" ", "-"))
        return store.insert(Category, name=name, **values)
    return _make


@pytest.fixture
def client(db_session, asset_store) -> Generator[TestClient, None, None]:
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_asset_store] = lambda: asset_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client) -> TestClient:
    token = auth.encode_session(auth.AdminSession(username="admin"))
    client.cookies.set(get_settings().session_cookie_name, token)
    return client


@pytest.fixture
def make_png():
    return png_bytes


@pytest.fixture
def asset_exists(asset_store):
    """Whether a logical /uploads/... path is present on disk."""
    def _exists(asset_path: str) -> bool:
        subtree = FILES if asset_path.startswith("/uploads/files/") else IMAGES
        return asset_store.full_path(subtree, asset_path).is_file()
    return _exists
