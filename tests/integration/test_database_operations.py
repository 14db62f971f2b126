"""Tests for engine setup, session management and schema verification."""

from datetime import datetime, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from taskbook.config import DatabaseSettings, TaskBookSettings
from taskbook.database import (
    create_db_and_tables,
    create_taskbook_engine,
    get_session_context,
    get_sync_session,
    init_database,
    verify_database,
)
from taskbook.schemas.database import Group, Task, User, UserGroup
from taskbook.schemas.unified_models import RelationType, utc_now


pytestmark = pytest.mark.integration


class TestEngineCreation:
    """Engine factory and SQLite connection setup."""

    def test_foreign_keys_enabled(self, temp_engine):
        with temp_engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_foreign_keys_can_be_disabled(self, temp_db_path):
        settings = TaskBookSettings(
            database=DatabaseSettings(
                url=f"sqlite:///{temp_db_path}", sqlite_foreign_keys=False
            )
        )
        engine = create_taskbook_engine(settings)
        try:
            with engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 0
        finally:
            engine.dispose()

    def test_store_level_cascade(self, temp_engine, users):
        """Deleting a group row directly removes dependent rows."""
        with Session(temp_engine) as session:
            group = Group(name="Raw Delete Group")
            session.add(group)
            session.flush()
            session.add(
                UserGroup(
                    user_id=users["owner"],
                    group_id=group.id,
                    relation_type=RelationType.OWNER,
                )
            )
            session.commit()
            group_id = group.id

        with temp_engine.begin() as conn:
            conn.execute(
                Group.__table__.delete().where(Group.__table__.c.id == group_id)
            )

        with Session(temp_engine) as session:
            assert session.get(UserGroup, (users["owner"], group_id)) is None

    def test_orphan_task_rejected(self, temp_engine, users):
        with Session(temp_engine) as session:
            session.add(
                Task(
                    group_id=uuid4(),
                    title="Orphan",
                    deadline=datetime(2030, 1, 1, tzinfo=timezone.utc),
                    created_by_user_id=users["owner"],
                )
            )
            with pytest.raises(IntegrityError):
                session.commit()

    def test_assignee_delete_rejected(self, temp_engine, users):
        """An assigned user cannot be removed out from under the task."""
        with Session(temp_engine) as session:
            group = Group(name="Assignment Group")
            session.add(group)
            session.flush()
            task = Task(
                group_id=group.id,
                title="Water plants",
                deadline=datetime(2030, 1, 1, tzinfo=timezone.utc),
                created_by_user_id=users["owner"],
                assigned_to_user_id=users["member"],
                date_time_assigned=utc_now(),
            )
            session.add(task)
            session.commit()
            task_id = task.id

        with pytest.raises(IntegrityError):
            with temp_engine.begin() as conn:
                conn.execute(
                    User.__table__.delete().where(User.__table__.c.id == users["member"])
                )

        with Session(temp_engine) as session:
            task = session.get(Task, task_id)
            assert task.assigned_to_user_id == users["member"]
            assert task.date_time_assigned is not None


class TestSessionHelpers:
    """Session factories and the transactional context manager."""

    def test_get_sync_session(self, temp_engine):
        session = get_sync_session(temp_engine)
        try:
            assert isinstance(session, Session)
            assert session.bind is temp_engine
        finally:
            session.close()

    def test_session_context_commits(self, temp_engine):
        with get_session_context(temp_engine) as session:
            session.add(Group(name="Committed Group"))

        with Session(temp_engine) as session:
            assert session.exec(select(func.count()).select_from(Group)).one() == 1

    def test_session_context_rolls_back(self, temp_engine):
        with pytest.raises(RuntimeError):
            with get_session_context(temp_engine) as session:
                session.add(Group(name="Discarded Group"))
                session.flush()
                raise RuntimeError("boom")

        with Session(temp_engine) as session:
            assert session.exec(select(func.count()).select_from(Group)).one() == 0


class TestInitAndVerify:
    """Table creation and verification."""

    def test_init_database_creates_tables(self, test_settings):
        engine = create_taskbook_engine(test_settings)
        try:
            init_database(engine)
            counts = verify_database(engine)
        finally:
            engine.dispose()

        assert counts == {"users": 0, "groups": 0, "user_groups": 0, "tasks": 0}

    def test_create_db_and_tables_is_idempotent(self, temp_engine):
        create_db_and_tables(temp_engine)
        create_db_and_tables(temp_engine)

        assert verify_database(temp_engine) is not None

    def test_verify_database_failure(self, temp_engine):
        with patch(
            "taskbook.database.get_session_context",
            side_effect=OperationalError("SELECT", {}, Exception("disk I/O error")),
        ):
            assert verify_database(temp_engine) is None
