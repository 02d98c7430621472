# flake8: noqa
import os
import sys
import tempfile
from pathlib import Path

# Ensure project root is on sys.path so `recipe_blog` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

# Settings are read at import time, so point them at throwaway locations first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STATIC_DIR", tempfile.mkdtemp(prefix="recipe-blog-static-"))
os.environ.setdefault("BASE_URL", "https://recipes.example.com")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recipe_blog import app as app_module
from recipe_blog import models


@pytest.fixture
def session_factory():
    # Use StaticPool so the same in-memory database is shared across connections
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app_module.app.dependency_overrides[app_module.get_db] = override_get_db
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


@pytest.fixture
def kimchi_stew():
    return {
        "title": "김치찌개 끓이기",
        "difficulty": 2,
        "category": "국/찌개",
        "tip": "신김치를 쓰면 더 맛있어요.",
        "ingredients": [
            {"name": "김치", "amount": "1/4포기"},
            {"name": "돼지고기", "amount": "200g"},
        ],
        "steps": ["김치를 볶는다", "물을 붓고 끓인다"],
        "tags": ["국물", "겨울"],
    }
