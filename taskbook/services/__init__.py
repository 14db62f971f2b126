"""Service layer for TaskBook business operations.

This module provides the service that coordinates between business
models and repositories.
"""

from .task_book_service import TaskBookService

__all__ = ["TaskBookService"]
