import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

_TMP = tempfile.mkdtemp(prefix="mock-interviewer-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'default.db')}")
os.environ.setdefault("RECORDINGS_DIR", os.path.join(_TMP, "recordings"))
os.environ["QUESTION_DELAY_SECONDS"] = "0"
os.environ["TRANSITION_DELAY_SECONDS"] = "0"
os.environ["NEXT_QUESTION_DELAY_SECONDS"] = "0"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mock_interviewer.api_routes import get_reviewer, get_storage
from mock_interviewer.database.db import get_db, init_db
from mock_interviewer.main import app
from mock_interviewer.storage import RecordingStorage

from fakes import StubReviewer


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def storage(tmp_path):
    return RecordingStorage(root_dir=str(tmp_path / "recordings"), base_url="http://testserver/recordings")


@pytest.fixture
def reviewer():
    return StubReviewer("## Overall Assessment\nClear answers.\n\n## Score: 82/100\n")


@pytest.fixture
def client(session_factory, storage, reviewer):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_reviewer] = lambda: reviewer
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
