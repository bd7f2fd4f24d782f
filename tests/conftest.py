"""Shared fixtures."""

import pytest

from projectree.models import Task, UserRef
from projectree.repository import ProjectRepository
from projectree.store.memory import InMemoryDocumentStore

ALICE = UserRef(id="u-alice", full_name="Alice Doe", email="alice@example.com")
BOB = UserRef(id="u-bob", full_name="Bob Roe", email="bob@example.com")


@pytest.fixture
def small_tree():
    """``[a: [b]]``."""
    return [Task(id="a", name="A", description="top", children=[Task(id="b", name="B")])]


@pytest.fixture
def wide_tree():
    """Two deliverables with nested sub-tasks and assignments."""
    return [
        Task(id="d1", name="Design", hours=10, cost_per_hour=50, assigned_to=[ALICE], children=[
            Task(id="d1-1", name="Mockups", assigned_to=[ALICE, BOB], children=[
                Task(id="d1-1-1", name="Landing page", assigned_to=[BOB]),
            ]),
            Task(id="d1-2", name="Style guide"),
        ]),
        Task(id="d2", name="Build", children=[
            Task(id="d2-1", name="Backend", assigned_to=[ALICE]),
        ]),
    ]


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store):
    return ProjectRepository(store)
