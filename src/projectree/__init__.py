"""
projectree - projects with arbitrarily nested deliverables and tasks.

This package provides the tree editing core (path resolution and pure
insert/patch/delete edits over a task tree), a repository that persists whole
project documents to a pluggable async document store, and an aggregator that
finds every task assigned to a user.
"""

from .version import VERSION
from .models import (
    UserRef,
    Task,
    AssignedTask,
    Customer,
    Project,
    PathItem,
    TaskPath,
)
from .tree import (
    resolve,
    children_at,
    insert_task,
    patch_task,
    delete_task,
    toggle_completion,
)
from .repository import ProjectRepository
from .aggregate import UserTaskAggregator, collect_assigned
from .auth import AuthService, StaticAuthService

__version__ = VERSION

__all__ = [
    "VERSION",
    "UserRef",
    "Task",
    "AssignedTask",
    "Customer",
    "Project",
    "PathItem",
    "TaskPath",
    "resolve",
    "children_at",
    "insert_task",
    "patch_task",
    "delete_task",
    "toggle_completion",
    "ProjectRepository",
    "UserTaskAggregator",
    "collect_assigned",
    "AuthService",
    "StaticAuthService",
]
