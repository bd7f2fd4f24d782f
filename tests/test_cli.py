"""Tests for the ptree command line interface."""

import re

import pytest
from click.testing import CliRunner

from projectree.cli import main
from projectree.config import ENV_OVERRIDES


@pytest.fixture
def invoke(tmp_path, monkeypatch):
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)
    runner = CliRunner()
    base = ["--config", str(tmp_path / "config.yml"), "--data-dir", str(tmp_path / "data")]

    def run(*args, **kwargs):
        return runner.invoke(main, base + list(args), **kwargs)
    return run


def created_id(output):
    return re.search(r"Created project (\S+)", output).group(1)


def added_path(output):
    return re.search(r"📍 (\S+)", output).group(1)


class TestCli:

    def test_status_on_empty_store(self, invoke):
        result = invoke("status")
        assert result.exit_code == 0
        assert "Projects: 0" in result.output
        assert "not signed in" in result.output

    def test_project_lifecycle(self, invoke):
        result = invoke("project", "create", "Website", "-d", "New site", "--customer-name", "ACME")
        assert result.exit_code == 0, result.output
        project_id = created_id(result.output)

        result = invoke("project", "list")
        assert project_id in result.output
        assert "Website" in result.output

        result = invoke("project", "show", project_id)
        assert "ACME" in result.output
        assert "No deliverables yet" in result.output

        result = invoke("project", "delete", project_id, "--yes")
        assert result.exit_code == 0
        assert "No projects found" in invoke("project", "list").output

    def test_task_commands(self, invoke):
        project_id = created_id(invoke("project", "create", "Website").output)

        result = invoke("task", "add", project_id, "Design", "--hours", "8", "-a", "u1:Una One:una@example.com")
        assert result.exit_code == 0, result.output
        design = added_path(result.output)
        assert design.startswith("deliverable:")

        result = invoke("task", "add", project_id, "Mockups", "-p", design, "--deadline", "2026-12-01")
        mockups = added_path(result.output)
        assert mockups.startswith(design + "/subtask:")

        result = invoke("task", "update", project_id, mockups, "--name", "Wireframes")
        assert "Updated 'Wireframes'" in result.output

        result = invoke("task", "toggle", project_id, mockups)
        assert "✅ Wireframes" in result.output

        shown = invoke("project", "show", project_id).output
        assert "Design" in shown
        assert "Wireframes" in shown
        assert "2026-12-01" in shown
        assert mockups in shown

        mine = invoke("mine", "--user", "u1").output
        assert "Design" in mine
        assert project_id in mine
        assert "Wireframes" not in mine

        result = invoke("task", "delete", project_id, design, "--yes")
        assert result.exit_code == 0
        assert "Design" not in invoke("project", "show", project_id).output

    def test_missing_node_fails(self, invoke):
        project_id = created_id(invoke("project", "create", "Website").output)
        result = invoke("task", "toggle", project_id, "deliverable:nope")
        assert result.exit_code == 1
        assert "Node not found" in result.output

    def test_bad_path(self, invoke):
        project_id = created_id(invoke("project", "create", "Website").output)
        result = invoke("task", "add", project_id, "X", "-p", "not-a-path")
        assert result.exit_code != 0

    def test_mine_needs_user(self, invoke):
        result = invoke("mine")
        assert result.exit_code == 1
        assert "signed-in user" in result.output

    def test_mine_uses_environment_user(self, invoke, monkeypatch):
        project_id = created_id(invoke("project", "create", "Website").output)
        invoke("task", "add", project_id, "Design", "-a", "u7")
        monkeypatch.setenv("PROJECTREE_USER", "u7")
        assert "Design" in invoke("mine").output
