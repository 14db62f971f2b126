"""Pytest configuration and fixtures for TaskBook tests."""

import tempfile
from datetime import timedelta
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel

from taskbook.config import DatabaseSettings, TaskBookSettings
from taskbook.database import create_taskbook_engine
from taskbook.repositories import UserRepository
from taskbook.schemas.unified_models import utc_now
from taskbook.services import TaskBookService


@pytest.fixture
def temp_db_path():
    """Create temporary database path."""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    temp_file.close()
    db_path = temp_file.name

    yield db_path

    # Cleanup
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def test_settings(temp_db_path):
    """Settings pointing at the temporary database."""
    return TaskBookSettings(database=DatabaseSettings(url=f"sqlite:///{temp_db_path}"))


@pytest.fixture
def temp_engine(test_settings):
    """Temporary SQLite engine with all tables created."""
    engine = create_taskbook_engine(test_settings)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_session(temp_engine):
    """Create test database session."""
    with Session(temp_engine) as session:
        yield session


@pytest.fixture
def service(test_session):
    """TaskBookService bound to the test session."""
    return TaskBookService(session=test_session)


@pytest.fixture
def users(test_session):
    """Three persisted users: an owner, a member and an outsider."""
    repo = UserRepository(test_session)
    created = {
        "owner": repo.create_user(
            "najam", email="najam@example.com", first_name="Najam", last_name="Awan"
        ),
        "member": repo.create_user(
            "sara", email="sara@example.com", first_name="Sara", last_name="Khan"
        ),
        "outsider": repo.create_user("omar", email="omar@example.com"),
    }
    test_session.commit()
    return {name: user.id for name, user in created.items()}


@pytest.fixture
def deadline():
    """A deadline one week out, without microseconds."""
    return (utc_now() + timedelta(days=7)).replace(microsecond=0)


@pytest.fixture
def home_group(service, users):
    """Active group owned by the owner user."""
    return service.create_group(users["owner"], "Home Chores", True)
