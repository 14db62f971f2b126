"""Business models and enums shared by the service and persistence layers.

The service returns these detached Pydantic models rather than live SQLModel
entities, so callers never touch a session after a call returns.
"""

from datetime import date, datetime, timezone
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlmodel import SQLModel
from sqlmodel import Field as SQLField


def utc_now() -> datetime:
    """Current time as an aware UTC datetime; stored timestamps are all UTC."""
    return datetime.now(timezone.utc)


class RelationType(StrEnum):
    """How a user relates to a group."""

    OWNER = "owner"
    MEMBER = "member"


class UnifiedConfig:
    """Centralized configuration for all business models."""

    PYDANTIC_CONFIG = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=False,
        frozen=False,
        from_attributes=True,
    )


class BaseBusinessModel(BaseModel):
    """Base for pure business logic models."""

    model_config = UnifiedConfig.PYDANTIC_CONFIG


class BaseEntityModel(SQLModel):
    """Base for database entity models with automatic timestamps."""

    created_at: datetime = SQLField(default_factory=utc_now)
    updated_at: datetime = SQLField(default_factory=utc_now)

    def touch(self) -> None:
        """Refresh the modification timestamp."""
        self.updated_at = utc_now()


class UserCore(BaseBusinessModel):
    """Identity principal as seen by the business layer."""

    id: UUID
    user_name: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None

    @computed_field
    @property
    def display_name(self) -> str:
        """First and last name, falling back to the user name."""
        full_name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full_name or self.user_name


class GroupCore(BaseBusinessModel):
    """A named collection of tasks."""

    id: UUID
    name: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True


class UserGroupCore(BaseBusinessModel):
    """Membership or ownership edge between a user and a group."""

    user_id: UUID
    group_id: UUID
    relation_type: RelationType
    group: GroupCore | None = None
    user: UserCore | None = None

    @computed_field
    @property
    def is_owner(self) -> bool:
        """Whether this edge grants ownership."""
        return self.relation_type == RelationType.OWNER


class TaskCore(BaseBusinessModel):
    """Unit of work scoped to a group."""

    id: UUID
    group_id: UUID
    title: str
    description: str = ""
    deadline: datetime
    created_by_user_id: UUID
    assigned_to_user_id: UUID | None = None
    date_time_assigned: datetime | None = None
    date_time_completed: datetime | None = None
    row_version: int = Field(default=1, ge=1)
    group: GroupCore | None = None
    created_by_user: UserCore | None = None
    assigned_to_user: UserCore | None = None

    @computed_field
    @property
    def is_assigned(self) -> bool:
        return self.assigned_to_user_id is not None

    @computed_field
    @property
    def is_completed(self) -> bool:
        return self.date_time_completed is not None

    @computed_field
    @property
    def is_active_assignment(self) -> bool:
        """Assigned and not yet completed."""
        return self.is_assigned and not self.is_completed
