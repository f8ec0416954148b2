"""Repositories over the kanbanctl tables."""

from kanbanctl.infrastructure.repositories.boards import BoardRepository
from kanbanctl.infrastructure.repositories.comments import CommentRepository
from kanbanctl.infrastructure.repositories.tasks import TaskRepository

__all__ = ["BoardRepository", "CommentRepository", "TaskRepository"]
