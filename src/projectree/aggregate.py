"""
Collect every task assigned to a user across all projects.
"""
from typing import Iterable, List, Optional

from .auth import AuthService
from .logs import get_logger
from .models import AssignedTask, Project
from .recovery import UnauthenticatedError
from .repository import ProjectRepository
from .tree import walk

log = get_logger("aggregate")


def collect_assigned(projects: Iterable[Project], user_id: str) -> List[AssignedTask]:
    """Depth-first, parent before children, projects in the order given."""
    found = []
    for project in projects:
        for _, task in walk(project.tasks):
            if task.is_assigned_to(user_id):
                found.append(AssignedTask.model_validate({**task.model_dump(), "project_id": project.id}))
    return found


class UserTaskAggregator:
    """Finds a user's assigned tasks through the repository."""

    def __init__(self, repository: ProjectRepository, auth: AuthService):
        self.repository = repository
        self.auth = auth

    async def find_assigned(self, user_id: Optional[str] = None) -> List[AssignedTask]:
        """
        Async: Tasks assigned to ``user_id``, or to the signed-in user when omitted.

        A failed project fetch yields an empty list; the error stays on
        ``repository.last_error``.

        Raises:
            UnauthenticatedError: no user id given and nobody signed in.
        """
        if user_id is None:
            user_id = self.auth.current_user_id()
        if not user_id:
            raise UnauthenticatedError("Finding assigned tasks needs a signed-in user")

        projects = await self.repository.fetch_all()
        found = collect_assigned(projects, user_id)
        log.debug(f"Found {len(found)} tasks assigned to {user_id} across {len(projects)} projects")
        return found
