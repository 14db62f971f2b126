"""TaskBook service layer bridging business logic and persistence.

Provides the group, membership and task operations used by the API layer.
Authorization checks (``is_group_owner``, ``is_related``, ``is_task_creator``)
are exposed as separate calls; the mutating operations trust the caller to
have made them.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlmodel import Session, select

from ..database import get_sync_session
from ..exceptions import (
    ConcurrencyConflictError,
    MembershipConflictError,
    StoreUnavailableError,
    TaskBookError,
)
from ..repositories import GroupRepository, TaskRepository, UserGroupRepository
from ..schemas.unified_models import RelationType, TaskCore, UserGroupCore, utc_now


logger = logging.getLogger(__name__)


class TaskBookService:
    """Stateless facade over the relational store.

    Every operation goes through the session handed in at construction.
    Missing rows are reported as None or False, never raised. Store failures
    surface as StoreUnavailableError; conflicting writes as ConflictError
    subclasses.
    """

    def __init__(self, session: Session | None = None):
        """Initialize the service with a database session.

        Args:
            session: SQLModel session. If None, creates default sync session.

        """
        if session is None:
            session = get_sync_session()

        self.session = session
        self.group_repo = GroupRepository(session)
        self.user_group_repo = UserGroupRepository(session)
        self.task_repo = TaskRepository(session)

    @contextmanager
    def _store_errors(self, operation: str) -> Generator[None, None, None]:
        """Roll back on failure and translate connectivity errors."""
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            self.session.rollback()
            logger.error(f"{operation} failed, store unavailable: {e}")
            raise StoreUnavailableError(operation, e) from e
        except (SQLAlchemyError, TaskBookError):
            self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Server time
    # ------------------------------------------------------------------

    def get_server_time(self) -> datetime:
        """Current time according to the store, not the local clock."""
        with self._store_errors("get_server_time"):
            value = self.session.exec(select(func.current_timestamp())).one()

        # SQLite hands CURRENT_TIMESTAMP back as text on some drivers
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        # CURRENT_TIMESTAMP is UTC even where the store drops the offset
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    # ------------------------------------------------------------------
    # Groups and memberships
    # ------------------------------------------------------------------

    def list_owned_groups(self, user_id: UUID) -> list[UserGroupCore]:
        """Groups the user owns, as owner edges with the group loaded."""
        with self._store_errors("list_owned_groups"):
            edges = self.user_group_repo.get_owned(user_id)
            return [edge.to_core_model() for edge in edges]

    def get_owned_group(self, user_id: UUID, group_id: UUID) -> UserGroupCore | None:
        with self._store_errors("get_owned_group"):
            edge = self.user_group_repo.get_owned_by_group(user_id, group_id)
            return edge.to_core_model() if edge else None

    def create_group(self, user_id: UUID, name: str, is_active: bool) -> UserGroupCore:
        """Create a group and make the user its owner in one commit."""
        with self._store_errors("create_group"):
            group = self.group_repo.create_group(name, is_active)
            self.user_group_repo.add_edge(user_id, group.id, RelationType.OWNER)
            self.session.commit()
            logger.info(f"User {user_id} created group {group.id}")

            return self.user_group_repo.get_owned_by_group(
                user_id, group.id
            ).to_core_model()

    def delete_group(self, group_id: UUID) -> bool:
        """Delete a group with its memberships and tasks.

        Ownership must be checked beforehand with ``is_group_owner``.

        Returns:
            False if the group does not exist

        """
        with self._store_errors("delete_group"):
            if not self.group_repo.delete(group_id):
                return False
            self.session.commit()
            logger.info(f"Deleted group {group_id}")
            return True

    def update_group(
        self, user_id: UUID, group_id: UUID, name: str, is_active: bool
    ) -> UserGroupCore | None:
        """Rename a group and return the caller's owner view of it.

        The rename is applied whenever the group exists; checking that the
        user owns it is up to the caller (see ``is_group_owner``). Returns
        None if the group does not exist, or if the user holds no owner edge
        to it, in which case the change has still been committed.
        """
        with self._store_errors("update_group"):
            if self.group_repo.rename(group_id, name, is_active) is None:
                return None
            self.session.commit()
            logger.info(f"Updated group {group_id}")

            edge = self.user_group_repo.get_owned_by_group(user_id, group_id)
            return edge.to_core_model() if edge else None

    def is_group_owner(self, user_id: UUID, group_id: UUID) -> bool:
        with self._store_errors("is_group_owner"):
            return self.user_group_repo.is_owner(user_id, group_id)

    def list_group_memberships(self, group_id: UUID) -> list[UserGroupCore]:
        """Member edges of a group (owners excluded), group and user loaded."""
        with self._store_errors("list_group_memberships"):
            return [
                edge.to_core_model()
                for edge in self.user_group_repo.get_members(group_id)
            ]

    def get_membership(self, user_id: UUID, group_id: UUID) -> UserGroupCore | None:
        with self._store_errors("get_membership"):
            edge = self.user_group_repo.get_membership(user_id, group_id)
            return edge.to_core_model() if edge else None

    def create_membership(self, user_id: UUID, group_id: UUID) -> UserGroupCore:
        """Add the user to the group as a member.

        Raises:
            MembershipConflictError: If the user already owns or belongs to
                the group

        """
        with self._store_errors("create_membership"):
            if self.user_group_repo.is_related(user_id, group_id):
                raise MembershipConflictError(user_id, group_id)

            try:
                self.user_group_repo.add_edge(user_id, group_id, RelationType.MEMBER)
                self.session.commit()
            except IntegrityError as e:
                self.session.rollback()
                # another writer inserted the same pair first; anything else
                # (unknown user or group) is not a membership conflict
                if self.user_group_repo.is_related(user_id, group_id):
                    raise MembershipConflictError(user_id, group_id) from e
                raise

            logger.info(f"User {user_id} joined group {group_id}")
            return self.user_group_repo.get_membership(user_id, group_id).to_core_model()

    def delete_membership(self, user_id: UUID, group_id: UUID) -> bool:
        """Remove the user's edge into the group; False if there is none."""
        with self._store_errors("delete_membership"):
            if not self.user_group_repo.delete((user_id, group_id)):
                return False
            self.session.commit()
            logger.info(f"Removed user {user_id} from group {group_id}")
            return True

    def list_user_memberships(self, user_id: UUID) -> list[UserGroupCore]:
        """Every edge of the user, owner and member alike."""
        with self._store_errors("list_user_memberships"):
            return [
                edge.to_core_model()
                for edge in self.user_group_repo.get_for_user(user_id)
            ]

    def is_related(self, user_id: UUID, group_id: UUID) -> bool:
        with self._store_errors("is_related"):
            return self.user_group_repo.is_related(user_id, group_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_group_tasks(self, group_id: UUID) -> list[TaskCore]:
        with self._store_errors("list_group_tasks"):
            return [task.to_core_model() for task in self.task_repo.get_by_group(group_id)]

    def get_task(self, task_id: UUID) -> TaskCore | None:
        with self._store_errors("get_task"):
            task = self.task_repo.get_hydrated(task_id)
            return task.to_core_model() if task else None

    def create_task(
        self,
        group_id: UUID,
        title: str,
        description: str,
        deadline: datetime,
        created_by_user_id: UUID,
    ) -> TaskCore:
        """Create an unassigned task in a group."""
        with self._store_errors("create_task"):
            task = self.task_repo.create_task(
                group_id, title, description, deadline, created_by_user_id
            )
            self.session.commit()
            logger.info(f"User {created_by_user_id} created task {task.id} in group {group_id}")

            return self.task_repo.get_hydrated(task.id).to_core_model()

    def is_task_creator(self, user_id: UUID, task_id: UUID) -> bool:
        with self._store_errors("is_task_creator"):
            return self.task_repo.is_creator(user_id, task_id)

    def update_task(
        self,
        task_id: UUID,
        title: str,
        description: str,
        deadline: datetime,
        expected_version: int | None = None,
    ) -> TaskCore | None:
        """Edit title, description and deadline.

        Raises:
            ConcurrencyConflictError: If ``expected_version`` is stale

        """
        return self._mutate_task(
            "update_task",
            task_id,
            {"title": title, "description": description, "deadline": deadline},
            expected_version,
        )

    def delete_task(self, task_id: UUID) -> bool:
        with self._store_errors("delete_task"):
            if not self.task_repo.delete(task_id):
                return False
            self.session.commit()
            logger.info(f"Deleted task {task_id}")
            return True

    def list_user_tasks(self, user_id: UUID) -> list[TaskCore]:
        """Tasks across every group the user owns or belongs to."""
        with self._store_errors("list_user_tasks"):
            return [task.to_core_model() for task in self.task_repo.get_for_user(user_id)]

    def get_user_task(self, user_id: UUID, task_id: UUID) -> TaskCore | None:
        with self._store_errors("get_user_task"):
            task = self.task_repo.get_for_user_by_id(user_id, task_id)
            return task.to_core_model() if task else None

    def list_user_assignments(self, user_id: UUID) -> list[TaskCore]:
        """Assigned, uncompleted tasks across the user's groups."""
        with self._store_errors("list_user_assignments"):
            return [
                task.to_core_model() for task in self.task_repo.get_assignments(user_id)
            ]

    def get_user_assignment(self, user_id: UUID, task_id: UUID) -> TaskCore | None:
        with self._store_errors("get_user_assignment"):
            task = self.task_repo.get_assignment(user_id, task_id)
            return task.to_core_model() if task else None

    def assign_task(
        self,
        assignee_user_id: UUID,
        task_id: UUID,
        expected_version: int | None = None,
    ) -> TaskCore | None:
        """Assign a task to a user, stamping the assignment time.

        Returns:
            The task as an active assignment seen from the assignee's groups,
            or None if the task does not exist

        """
        with self._store_errors("assign_task"):
            task = self.task_repo.apply_changes(
                task_id,
                {
                    "assigned_to_user_id": assignee_user_id,
                    "date_time_assigned": utc_now(),
                },
                expected_version,
            )
            if task is None:
                return None
            self.session.commit()
            logger.info(f"Assigned task {task_id} to user {assignee_user_id}")

            assignment = self.task_repo.get_assignment(assignee_user_id, task_id)
            return assignment.to_core_model() if assignment else None

    def unassign_task(self, task_id: UUID, expected_version: int | None = None) -> bool:
        """Clear assignee and assignment time; False if the task is missing."""
        with self._store_errors("unassign_task"):
            task = self.task_repo.apply_changes(
                task_id,
                {"assigned_to_user_id": None, "date_time_assigned": None},
                expected_version,
            )
            if task is None:
                return False
            self.session.commit()
            logger.info(f"Unassigned task {task_id}")
            return True

    def complete_task(self, task_id: UUID, expected_version: int | None = None) -> bool:
        """Mark a task completed; False if the task is missing.

        Completing an already completed task keeps the first timestamp.

        Raises:
            ConcurrencyConflictError: If ``expected_version`` is stale, even
                when the task is already completed

        """
        with self._store_errors("complete_task"):
            task = self.task_repo.get_by_id(task_id)
            if task is None:
                return False
            if expected_version is not None and task.row_version != expected_version:
                raise ConcurrencyConflictError(task_id, expected_version)
            if task.date_time_completed is not None:
                return True

            self.task_repo.apply_changes(
                task_id, {"date_time_completed": utc_now()}, expected_version
            )
            self.session.commit()
            logger.info(f"Completed task {task_id}")
            return True

    def _mutate_task(
        self,
        operation: str,
        task_id: UUID,
        changes: dict,
        expected_version: int | None,
    ) -> TaskCore | None:
        with self._store_errors(operation):
            task = self.task_repo.apply_changes(task_id, changes, expected_version)
            if task is None:
                return None
            self.session.commit()
            logger.info(f"{operation} applied to task {task_id}")

            return self.task_repo.get_hydrated(task_id).to_core_model()

    def close(self):
        """Close the database session."""
        if self.session:
            self.session.close()
