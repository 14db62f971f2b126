"""Schema package for the TaskBook business layer.

This package provides:
- Enums and Pydantic business models returned by the service
- SQLModel table entities used by the repositories

Quick usage:
    from taskbook.schemas import TaskCore, RelationType
    from taskbook.repositories import TaskRepository
    from taskbook.services import TaskBookService
"""

# Database entities
from .database import Group, Task, User, UserGroup

# Business models and types
from .unified_models import (
    BaseBusinessModel,
    BaseEntityModel,
    GroupCore,
    RelationType,
    TaskCore,
    UnifiedConfig,
    UserCore,
    UserGroupCore,
    utc_now,
)


__all__ = [
    "BaseBusinessModel",
    "BaseEntityModel",
    "Group",
    "GroupCore",
    "RelationType",
    "Task",
    "TaskCore",
    "UnifiedConfig",
    "User",
    "UserCore",
    "UserGroup",
    "UserGroupCore",
    "utc_now",
]
