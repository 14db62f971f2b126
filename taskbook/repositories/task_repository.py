"""Task repository with group scoping and assignment queries.

Every read that hands tasks back to the service loads the group, creator
and assignee in the same round trip.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select

from ..exceptions import ConcurrencyConflictError
from ..schemas.database import Task, UserGroup
from ..schemas.unified_models import utc_now
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Repository for task operations."""

    def get_entity_class(self) -> type[Task]:
        """Return the database entity class for this repository."""
        return Task

    def _hydrated(self, statement):
        return self.with_relations(
            statement, Task.group, Task.created_by_user, Task.assigned_to_user
        )

    def _user_scope(self, user_id: UUID):
        """Tasks in every group the user has an edge into."""
        return (
            select(Task)
            .join(UserGroup, UserGroup.group_id == Task.group_id)
            .where(UserGroup.user_id == user_id)
        )

    @staticmethod
    def _active_assignment(statement):
        return statement.where(
            Task.assigned_to_user_id.is_not(None),
            Task.date_time_completed.is_(None),
        )

    def get_by_group(self, group_id: UUID) -> list[Task]:
        statement = self._hydrated(
            select(Task).where(Task.group_id == group_id).order_by(Task.deadline)
        )
        return list(self.session.exec(statement).all())

    def get_hydrated(self, task_id: UUID) -> Task | None:
        statement = self._hydrated(select(Task).where(Task.id == task_id))
        return self.session.exec(statement).one_or_none()

    def create_task(
        self,
        group_id: UUID,
        title: str,
        description: str,
        deadline: datetime,
        created_by_user_id: UUID,
    ) -> Task:
        """Insert an unassigned task with a fresh identifier."""
        return self.add(
            Task(
                group_id=group_id,
                title=title,
                description=description,
                deadline=deadline,
                created_by_user_id=created_by_user_id,
            )
        )

    def is_creator(self, user_id: UUID, task_id: UUID) -> bool:
        statement = select(Task.id).where(
            Task.id == task_id, Task.created_by_user_id == user_id
        )
        return self.session.exec(statement).first() is not None

    def get_for_user(self, user_id: UUID) -> list[Task]:
        statement = self._hydrated(self._user_scope(user_id).order_by(Task.deadline))
        return list(self.session.exec(statement).all())

    def get_for_user_by_id(self, user_id: UUID, task_id: UUID) -> Task | None:
        statement = self._hydrated(self._user_scope(user_id).where(Task.id == task_id))
        return self.session.exec(statement).one_or_none()

    def get_assignments(self, user_id: UUID) -> list[Task]:
        """Assigned, uncompleted tasks within the user's groups."""
        statement = self._hydrated(
            self._active_assignment(self._user_scope(user_id)).order_by(Task.deadline)
        )
        return list(self.session.exec(statement).all())

    def get_assignment(self, user_id: UUID, task_id: UUID) -> Task | None:
        statement = self._hydrated(
            self._active_assignment(self._user_scope(user_id)).where(Task.id == task_id)
        )
        return self.session.exec(statement).one_or_none()

    def apply_changes(
        self,
        task_id: UUID,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> Task | None:
        """Write field changes and bump the row version.

        With ``expected_version`` the UPDATE only matches the row at that
        version; a miss raises ConcurrencyConflictError. Without it the
        last write wins.

        Returns:
            The updated task, or None if it does not exist

        """
        task = self.get_by_id(task_id)
        if task is None:
            return None

        if expected_version is None:
            for key, value in changes.items():
                setattr(task, key, value)
            task.row_version += 1
            task.touch()
            self.session.add(task)
            self.session.flush()
            return task

        statement = (
            update(Task)
            .where(Task.id == task_id, Task.row_version == expected_version)
            .values(**changes, row_version=Task.row_version + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(statement)
        if result.rowcount == 0:
            raise ConcurrencyConflictError(task_id, expected_version)

        self.session.refresh(task)
        return task
