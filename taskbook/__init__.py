"""TaskBook - group and task management business layer.

This package contains the persistence and business operations behind the
TaskBook application: users belong to groups, groups contain tasks, and tasks
are assigned to group members and tracked to completion.

Core Components:
- config: Settings loaded from the environment with pydantic-settings
- database: Engine and session management
- schemas: Business models and SQLModel table entities
- repositories: Data access per aggregate
- services: TaskBookService facade used by the API layer
"""

from .exceptions import (
    ConcurrencyConflictError,
    ConflictError,
    MembershipConflictError,
    StoreUnavailableError,
    TaskBookError,
)
from .schemas import (
    GroupCore,
    RelationType,
    TaskCore,
    UserCore,
    UserGroupCore,
)
from .services import TaskBookService

__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "GroupCore",
    "MembershipConflictError",
    "RelationType",
    "StoreUnavailableError",
    "TaskBookError",
    "TaskBookService",
    "TaskCore",
    "UserCore",
    "UserGroupCore",
]

__version__ = "1.0.0"
