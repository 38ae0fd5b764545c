"""Repositories for data access operations."""

from app.repositories.automation_repository import AutomationRepository
from app.repositories.contact_repository import ContactRepository
from app.repositories.tag_repository import TagRepository
from app.repositories.task_repository import TaskRepository

__all__ = [
    "AutomationRepository",
    "ContactRepository",
    "TagRepository",
    "TaskRepository",
]
