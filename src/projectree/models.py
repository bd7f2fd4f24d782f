from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime, timezone
from typing import Optional, List, Literal, Sequence, Union
from uuid import uuid4
import random
import re

from .recovery import InvalidPathError


def new_task_id() -> str:
    return str(uuid4())


def new_internal_id() -> str:
    """Human readable project id such as ``p-042917``."""
    return f"p-{random.randint(0, 999999):06d}"


class UserRef(BaseModel):
    """Snapshot of a user embedded in a task's assignment list."""

    model_config = ConfigDict(json_schema_serialization_defaults_required=True)

    id: str = Field(description="Id of the user at the time of assignment")
    full_name: str = Field(default="", description="Display name copied from the user's profile")
    email: str = Field(default="", description="Email copied from the user's profile")


class Task(BaseModel):
    """One node of a project's work-breakdown tree."""

    model_config = ConfigDict(json_schema_serialization_defaults_required=True)

    id: str = Field(default_factory=new_task_id, description="Unique identifier within the project tree")
    name: str = Field(description="The human readable name of the task")
    description: str = Field(default="", description="What the task is about")
    hours: Optional[float] = Field(default=None, ge=0, description="Estimated hours")
    cost_per_hour: Optional[float] = Field(default=None, ge=0, description="Cost per estimated hour")
    deadline: Optional[date] = Field(default=None, description="When the task is due")
    completed: bool = Field(default=False, description="Whether the task is done")
    assigned_to: List[UserRef] = Field(
        default_factory=list,
        description="Users assigned to the task"
    )
    children: List['Task'] = Field(
        default_factory=list,
        description="Sub-tasks owned by this task"
    )

    @field_validator('id', 'name')
    @classmethod
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    def is_assigned_to(self, user_id: str) -> bool:
        return any(user.id == user_id for user in self.assigned_to)

    @property
    def estimated_cost(self) -> float:
        return (self.hours or 0) * (self.cost_per_hour or 0)

Task.model_rebuild()


class AssignedTask(Task):
    """A task returned by the assignment search, tagged with its owning project."""

    project_id: str = Field(description="Store id of the project the task belongs to")


class Customer(BaseModel):
    model_config = ConfigDict(json_schema_serialization_defaults_required=True)

    name: str = Field(default="", description="Customer name")
    phone: str = Field(default="", description="Customer phone number")
    address: str = Field(default="", description="Customer postal address")


class Project(BaseModel):
    """A project document, including its full task tree."""

    model_config = ConfigDict(json_schema_serialization_defaults_required=True)

    id: Optional[str] = Field(default=None, description="Key assigned by the document store")
    internal_id: str = Field(default_factory=new_internal_id, description="Human readable project id")
    name: str = Field(description="Project name")
    description: str = Field(default="", description="Project description")
    customer: Customer = Field(default_factory=Customer, description="Who the project is for")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the project was created"
    )
    type: Literal["project"] = Field(default="project", description="Document type tag")
    tasks: List[Task] = Field(
        default_factory=list,
        description="Root-level tasks (deliverables)"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    def task_count(self) -> int:
        def count(nodes):
            return sum(1 + count(node.children) for node in nodes)
        return count(self.tasks)


class PathItem(BaseModel):
    """One segment of a task path: a type tag and a node id."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="task", description="deliverable, subtask or task")
    id: str = Field(description="Id of the node at this level")

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"


class TaskPath:
    """Utility class for parsing and rendering task paths.

    The string form is ``type:id/type:id/...``; the empty string is the root
    of the tree.
    """

    SEGMENT_PATTERN = re.compile(r'^([A-Za-z][A-Za-z_-]*):([^/:]+)$')

    def __init__(self, path: Union[str, Sequence[Union[PathItem, str]], None] = None):
        self.items: List[PathItem] = []
        if path is None:
            self.raw_path = ""
        elif isinstance(path, str):
            self.raw_path = path
            self._parse()
        else:
            self.items = [item if isinstance(item, PathItem) else PathItem(id=item) for item in path]
            self.raw_path = "/".join(str(item) for item in self.items)

    def _parse(self):
        """Parse the path into segments."""
        path = self.raw_path.strip("/")
        if not path:
            return
        for segment in path.split("/"):
            match = self.SEGMENT_PATTERN.match(segment)
            if not match:
                raise InvalidPathError(f"Invalid task path format: {self.raw_path}")
            self.items.append(PathItem(type=match.group(1), id=match.group(2)))

    @classmethod
    def validate_path(cls, path: str) -> bool:
        """Validate if a path string is properly formatted."""
        try:
            cls(path)
            return True
        except InvalidPathError:
            return False

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    @property
    def parent(self) -> 'TaskPath':
        if not self.items:
            raise InvalidPathError("The root path has no parent")
        return TaskPath(self.items[:-1])

    @property
    def leaf(self) -> Optional[PathItem]:
        return self.items[-1] if self.items else None

    def child(self, node_id: str, node_type: Optional[str] = None) -> 'TaskPath':
        """Path to a child of the node this path points at."""
        if node_type is None:
            node_type = "deliverable" if not self.items else "subtask"
        return TaskPath(self.items + [PathItem(type=node_type, id=node_id)])

    def is_root(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __eq__(self, other) -> bool:
        if isinstance(other, TaskPath):
            return self.items == other.items
        return NotImplemented

    def __str__(self) -> str:
        return "/".join(str(item) for item in self.items)

    def __repr__(self) -> str:
        return f"TaskPath({str(self)!r})"
