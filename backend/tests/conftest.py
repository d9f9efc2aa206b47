"""Shared pytest fixtures.

Uses an in-memory SQLite database shared through a StaticPool so tests are
fast and need no external infrastructure.
"""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from database.base import Base, get_db
from database.models import Assets, Project
from main import app
from operators.asset_operator import create_asset
from operators.project_operator import create_project


# ---------------------------------------------------------------------------
# Engine + session wired to in-memory SQLite
# ---------------------------------------------------------------------------

@pytest.fixture()
def db() -> Iterator[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


# ---------------------------------------------------------------------------
# TestClient wired to the FastAPI app
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(db: Session) -> Iterator[TestClient]:
    def _override_get_db() -> Iterator[Session]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture()
def project(db: Session) -> Project:
    return create_project("Test project", db)


@pytest.fixture()
def make_asset(db: Session, project: Project):
    def _make_asset(
        name: str = "clip.mp4",
        asset_type: str = "video",
        duration: float | None = 10.0,
        target_project: Project | None = None,
    ) -> Assets:
        owner = target_project or project
        metadata = {"duration": duration} if duration is not None else None
        return create_asset(
            db,
            owner.project_id,
            asset_name=name,
            asset_type=asset_type,
            asset_url=f"https://cdn.example.com/{name}",
            asset_key=f"{owner.project_id}/{name}",
            asset_metadata=metadata,
        )

    return _make_asset
