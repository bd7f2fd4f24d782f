"""Tests for the user-task aggregator."""

import pytest

from projectree.aggregate import UserTaskAggregator, collect_assigned
from projectree.auth import StaticAuthService
from projectree.models import AssignedTask, Project, Task, UserRef
from projectree.recovery import DataIntegrityError, PersistenceError, UnauthenticatedError
from projectree.repository import ProjectRepository
from tests.conftest import ALICE, BOB
from tests.test_repository import FlakyStore


class TestCollectAssigned:
    """Pure collection over in-memory projects."""

    def test_depth_first_in_project_order(self, wide_tree):
        first = Project(id="p1", name="One", tasks=wide_tree)
        second = Project(id="p2", name="Two", tasks=[Task(id="x", name="Other", assigned_to=[ALICE])])
        found = collect_assigned([first, second], ALICE.id)
        assert [(t.project_id, t.id) for t in found] == [
            ("p1", "d1"), ("p1", "d1-1"), ("p1", "d2-1"), ("p2", "x"),
        ]
        assert all(isinstance(t, AssignedTask) for t in found)

    def test_other_user(self, wide_tree):
        found = collect_assigned([Project(id="p1", name="One", tasks=wide_tree)], BOB.id)
        assert [t.id for t in found] == ["d1-1", "d1-1-1"]

    def test_nobody_matches(self, wide_tree):
        assert collect_assigned([Project(id="p1", name="One", tasks=wide_tree)], "u-nobody") == []

    def test_results_keep_children(self, wide_tree):
        found = collect_assigned([Project(id="p1", name="One", tasks=wide_tree)], ALICE.id)
        assert [c.id for c in found[0].children] == ["d1-1", "d1-2"]


class TestUserTaskAggregator:
    """Aggregation through the repository."""

    @pytest.mark.asyncio
    async def test_uses_signed_in_user(self, repository, wide_tree):
        project = await repository.create({"name": "One", "tasks": wide_tree})
        aggregator = UserTaskAggregator(repository, StaticAuthService(BOB))
        found = await aggregator.find_assigned()
        assert [t.id for t in found] == ["d1-1", "d1-1-1"]
        assert {t.project_id for t in found} == {project.id}

    @pytest.mark.asyncio
    async def test_explicit_user_wins(self, repository, wide_tree):
        await repository.create({"name": "One", "tasks": wide_tree})
        aggregator = UserTaskAggregator(repository, StaticAuthService(BOB))
        found = await aggregator.find_assigned(ALICE.id)
        assert [t.id for t in found] == ["d1", "d1-1", "d2-1"]

    @pytest.mark.asyncio
    async def test_unauthenticated(self, repository):
        aggregator = UserTaskAggregator(repository, StaticAuthService())
        with pytest.raises(UnauthenticatedError):
            await aggregator.find_assigned()

    @pytest.mark.asyncio
    async def test_project_id_is_not_persisted(self, repository, store, wide_tree):
        project = await repository.create({"name": "One", "tasks": wide_tree})
        await UserTaskAggregator(repository, StaticAuthService(ALICE)).find_assigned()
        document = await store.get("projects", project.id)
        assert "project_id" not in document["tasks"][0]

    @pytest.mark.asyncio
    async def test_fetch_failure_gives_empty_result(self):
        store = FlakyStore()
        repository = ProjectRepository(store)
        await repository.create({"name": "One", "tasks": [Task(name="Mine", assigned_to=[ALICE])]})
        store.failing.add("list")
        found = await UserTaskAggregator(repository, StaticAuthService(ALICE)).find_assigned()
        assert found == []
        assert isinstance(repository.last_error, PersistenceError)

    @pytest.mark.asyncio
    async def test_unreadable_project_is_skipped(self, repository, store, wide_tree):
        await store.insert("projects", {"__id": "p-1", "name": "Old", "customer": "ACME"})
        project = await repository.create({"name": "One", "tasks": wide_tree})
        found = await UserTaskAggregator(repository, StaticAuthService(BOB)).find_assigned()
        assert [(t.project_id, t.id) for t in found] == [(project.id, "d1-1"), (project.id, "d1-1-1")]
        assert isinstance(repository.last_error, DataIntegrityError)


class TestAuth:
    def test_static_auth_from_settings(self):
        from projectree.config import Settings
        auth = StaticAuthService.from_settings(Settings(user_id="u1", user_name="Una"))
        assert auth.current_user_id() == "u1"
        assert auth.current_user() == UserRef(id="u1", full_name="Una")
        assert StaticAuthService.from_settings(Settings()).current_user() is None
