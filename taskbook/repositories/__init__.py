"""Repository pattern implementations for clean data access.

This module provides the repository layer that bridges business logic
with database persistence.
"""

from .base import BaseRepository
from .group_repository import GroupRepository, UserGroupRepository, UserRepository
from .task_repository import TaskRepository


__all__ = [
    "BaseRepository",
    "GroupRepository",
    "TaskRepository",
    "UserGroupRepository",
    "UserRepository",
]
