"""
Shared test fixtures — SQLite test database, test client, sample jobs.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Configure before importing app modules: no external calls in tests
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["GEMINI_API_KEY"] = ""
os.environ["TELEGRAM_TOKEN"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""
os.environ["TARIFF_PATH"] = ""

from weldquote.database import Base, get_db
from weldquote.main import app
from weldquote.schemas import JobSpec


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def steel_job():
    """16.3 m of butt seam in thin black steel, from pre-cut blanks."""
    return JobSpec(
        work_type="welding",
        work_scope="pre_cut",
        material="steel",
        thickness="lt_3",
        weld_type="butt",
        volume_text="16.3 м",
        description="Сварить каркас навеса из профтрубы",
    )
