"""SQLModel database entity models with Pydantic integration.

Table definitions for users, groups, memberships and tasks. Each entity can
convert itself into the matching business model; only relationships that
were eagerly loaded are carried over, so conversion never triggers a lazy
load.
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import Index, inspect
from sqlmodel import Field, Relationship

from .unified_models import (
    BaseEntityModel,
    GroupCore,
    RelationType,
    TaskCore,
    UserCore,
    UserGroupCore,
)


def _loaded_relation(entity: BaseEntityModel, name: str) -> Any:
    """Return a relationship value only if it is already loaded."""
    if name in inspect(entity).unloaded:
        return None
    related = getattr(entity, name)
    return related.to_core_model() if related is not None else None


class User(BaseEntityModel, table=True):
    """Identity principal, owned by the identity subsystem."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_name: str = Field(max_length=256, unique=True, index=True)
    email: str | None = Field(default=None, max_length=256)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    date_of_birth: date | None = None

    def to_core_model(self) -> UserCore:
        """Convert to UserCore business model."""
        return UserCore.model_validate(self)


class Group(BaseEntityModel, table=True):
    """A named collection of tasks."""

    __tablename__ = "groups"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(min_length=1, max_length=100)
    is_active: bool = True

    # Relationships
    user_groups: list["UserGroup"] = Relationship(
        back_populates="group",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    tasks: list["Task"] = Relationship(
        back_populates="group",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    def to_core_model(self) -> GroupCore:
        """Convert to GroupCore business model."""
        return GroupCore.model_validate(self)


class UserGroup(BaseEntityModel, table=True):
    """Membership or ownership edge between a user and a group."""

    __tablename__ = "user_groups"
    __table_args__ = (
        Index("ix_user_groups_group_id", "group_id"),
        Index("ix_user_groups_relation_type", "relation_type"),
    )

    user_id: UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    group_id: UUID = Field(
        foreign_key="groups.id", primary_key=True, ondelete="CASCADE"
    )
    relation_type: RelationType = RelationType.MEMBER

    # Relationships
    user: Optional[User] = Relationship()
    group: Optional[Group] = Relationship(back_populates="user_groups")

    def to_core_model(self) -> UserGroupCore:
        """Convert to UserGroupCore, including loaded group and user."""
        return UserGroupCore(
            user_id=self.user_id,
            group_id=self.group_id,
            relation_type=self.relation_type,
            group=_loaded_relation(self, "group"),
            user=_loaded_relation(self, "user"),
        )


class Task(BaseEntityModel, table=True):
    """A unit of work scoped to a group."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_group_id", "group_id"),
        Index("ix_tasks_created_by_user_id", "created_by_user_id"),
        Index("ix_tasks_assigned_to_user_id", "assigned_to_user_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    group_id: UUID = Field(foreign_key="groups.id", ondelete="CASCADE")
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    deadline: datetime
    created_by_user_id: UUID = Field(foreign_key="users.id")
    # no ON DELETE action: an assignee row cannot vanish under its assignment
    assigned_to_user_id: UUID | None = Field(default=None, foreign_key="users.id")
    date_time_assigned: datetime | None = None
    date_time_completed: datetime | None = None
    row_version: int = Field(default=1, ge=1)

    # Relationships
    group: Optional[Group] = Relationship(back_populates="tasks")
    created_by_user: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.created_by_user_id]"},
    )
    assigned_to_user: Optional[User] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Task.assigned_to_user_id]"},
    )

    def to_core_model(self) -> TaskCore:
        """Convert to TaskCore, including loaded group, creator and assignee."""
        return TaskCore(
            id=self.id,
            group_id=self.group_id,
            title=self.title,
            description=self.description,
            deadline=self.deadline,
            created_by_user_id=self.created_by_user_id,
            assigned_to_user_id=self.assigned_to_user_id,
            date_time_assigned=self.date_time_assigned,
            date_time_completed=self.date_time_completed,
            row_version=self.row_version,
            group=_loaded_relation(self, "group"),
            created_by_user=_loaded_relation(self, "created_by_user"),
            assigned_to_user=_loaded_relation(self, "assigned_to_user"),
        )


__all__ = ["Group", "Task", "User", "UserGroup"]
