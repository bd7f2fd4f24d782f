"""
Command Line Interface for projectree.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import click

from .version import VERSION
from .auth import StaticAuthService
from .aggregate import UserTaskAggregator
from .config import load_settings
from .models import Task, TaskPath, UserRef
from .recovery import ProjectreeError
from .repository import ProjectRepository
from .store import create_store


class AppContext:
    """Everything a command needs, built once per invocation."""

    def __init__(self, config_path: Optional[str], data_dir: Optional[str]):
        self.settings = load_settings(config_path)
        if data_dir:
            self.settings = self.settings.model_copy(update={"data_dir": Path(data_dir)})
        self.repository = ProjectRepository(create_store(self.settings))
        self.auth = StaticAuthService.from_settings(self.settings)


def _run(coro):
    try:
        return asyncio.run(coro)
    except ProjectreeError as e:
        click.echo(f"❌ {e}")
        raise click.exceptions.Exit(1)


def _parse_path(raw: Optional[str]) -> TaskPath:
    try:
        return TaskPath(raw or "")
    except ProjectreeError as e:
        raise click.BadParameter(str(e))


def _parse_users(values) -> List[UserRef]:
    """``id`` or ``id:Full Name:email``."""
    users = []
    for value in values:
        parts = value.split(":", 2)
        users.append(UserRef(
            id=parts[0],
            full_name=parts[1] if len(parts) > 1 else "",
            email=parts[2] if len(parts) > 2 else "",
        ))
    return users


def _echo_tree(tasks: List[Task], path: TaskPath, depth: int = 1):
    for task in tasks:
        here = path.child(task.id)
        mark = "✅" if task.completed else "⬜"
        line = f"{'   ' * depth}{mark} {task.name}"
        if task.deadline:
            line += f"  📅 {task.deadline.isoformat()}"
        if task.assigned_to:
            line += "  👤 " + ", ".join(u.full_name or u.id for u in task.assigned_to)
        click.echo(line)
        click.echo(f"{'   ' * depth}   📍 {here}")
        _echo_tree(task.children, here, depth + 1)


@click.group()
@click.version_option(version=VERSION, prog_name="ptree")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Path to a config.yml')
@click.option('--data-dir', type=click.Path(file_okay=False), help='Override the data directory')
@click.pass_context
def main(ctx, config_path, data_dir):
    """
    projectree - projects with nested deliverables and tasks.
    """
    try:
        ctx.obj = AppContext(config_path, data_dir)
    except ProjectreeError as e:
        raise click.UsageError(str(e))


@main.command()
@click.pass_obj
def status(app):
    """Show configuration and a summary of stored projects."""
    click.echo("🔧 projectree")
    click.echo(f"📦 Version: {VERSION}")
    click.echo(f"🗄️  Backend: {app.settings.backend}")
    click.echo(f"📁 Data: {app.settings.data_dir}")
    user = app.auth.current_user()
    click.echo(f"👤 User: {user.full_name or user.id}" if user else "👤 User: (not signed in)")

    projects = _run(app.repository.fetch_all())
    if app.repository.last_error:
        click.echo(f"⚠️  Warning: Error loading projects: {app.repository.last_error}")
        return
    total = sum(p.task_count() for p in projects)
    click.echo(f"📋 Projects: {len(projects)} ({total} tasks)")


@main.group()
def project():
    """Manage projects."""
    pass


@project.command('create')
@click.argument('name')
@click.option('-d', '--description', default="", help='Project description')
@click.option('--customer-name', default="", help='Customer name')
@click.option('--customer-phone', default="", help='Customer phone')
@click.option('--customer-address', default="", help='Customer address')
@click.pass_obj
def project_create(app, name, description, customer_name, customer_phone, customer_address):
    """Create a new project."""
    created = _run(app.repository.create({
        "name": name,
        "description": description,
        "customer": {"name": customer_name, "phone": customer_phone, "address": customer_address},
    }))
    click.echo(f"✅ Created project {created.id} ({created.internal_id})")


@project.command('list')
@click.pass_obj
def project_list(app):
    """List all projects."""
    projects = _run(app.repository.fetch_all())
    if app.repository.last_error:
        click.echo(f"⚠️  Warning: Error loading projects: {app.repository.last_error}")
    if not projects:
        click.echo("📭 No projects found")
        return
    for p in projects:
        done = sum(1 for t in p.tasks if t.completed)
        click.echo(f"🗂️  {p.id}  {p.internal_id}  {p.name}  ({done}/{len(p.tasks)} deliverables done)")


@project.command('show')
@click.argument('project_id')
@click.pass_obj
def project_show(app, project_id):
    """Show a project and its task tree."""
    found = _run(app.repository.fetch(project_id))
    if found is None:
        click.echo(f"❌ Project not found: {project_id}")
        raise click.exceptions.Exit(1)
    click.echo(f"📋 {found.name} ({found.internal_id})")
    if found.description:
        click.echo(f"   {found.description}")
    if found.customer.name:
        click.echo(f"   🏷️  Customer: {found.customer.name}")
    click.echo(f"   📅 Created: {found.created_at.isoformat()}")
    if not found.tasks:
        click.echo("   📭 No deliverables yet")
    _echo_tree(found.tasks, TaskPath())


@project.command('delete')
@click.argument('project_id')
@click.confirmation_option(prompt='Are you sure you want to delete this project and all of its tasks?')
@click.pass_obj
def project_delete(app, project_id):
    """Delete a project."""
    _run(app.repository.delete(project_id))
    click.echo(f"✅ Deleted project {project_id}")


@main.group()
def task():
    """Manage deliverables and tasks."""
    pass


def _task_fields(description, hours, cost_per_hour, deadline):
    fields = {}
    if description is not None:
        fields["description"] = description
    if hours is not None:
        fields["hours"] = hours
    if cost_per_hour is not None:
        fields["cost_per_hour"] = cost_per_hour
    if deadline is not None:
        fields["deadline"] = deadline.date()
    return fields


@task.command('add')
@click.argument('project_id')
@click.argument('name')
@click.option('-p', '--path', default="", help='Parent path (e.g. "deliverable:<id>/subtask:<id>"); empty adds a deliverable')
@click.option('-d', '--description', default=None, help='Task description')
@click.option('--hours', type=float, default=None, help='Estimated hours')
@click.option('--cost-per-hour', type=float, default=None, help='Cost per hour')
@click.option('--deadline', type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help='Deadline (YYYY-MM-DD)')
@click.option('-a', '--assign', multiple=True, help='User as "id" or "id:Full Name:email"; repeatable')
@click.pass_obj
def task_add(app, project_id, name, path, description, hours, cost_per_hour, deadline, assign):
    """Add a deliverable or sub-task."""
    parent = _parse_path(path)
    fields = _task_fields(description, hours, cost_per_hour, deadline)
    fields["name"] = name
    fields["assigned_to"] = _parse_users(assign)
    added = _run(app.repository.add_task(project_id, parent, fields))
    click.echo(f"✅ Added '{added.name}'")
    click.echo(f"📍 {parent.child(added.id)}")


@task.command('update')
@click.argument('project_id')
@click.argument('path')
@click.option('-n', '--name', default=None, help='New name')
@click.option('-d', '--description', default=None, help='New description')
@click.option('--hours', type=float, default=None, help='Estimated hours')
@click.option('--cost-per-hour', type=float, default=None, help='Cost per hour')
@click.option('--deadline', type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help='Deadline (YYYY-MM-DD)')
@click.option('-a', '--assign', multiple=True, help='Replace assignees; "id" or "id:Full Name:email"')
@click.pass_obj
def task_update(app, project_id, path, name, description, hours, cost_per_hour, deadline, assign):
    """Update fields of the task at PATH."""
    target = _parse_path(path)
    changes = _task_fields(description, hours, cost_per_hour, deadline)
    if name is not None:
        changes["name"] = name
    if assign:
        changes["assigned_to"] = _parse_users(assign)
    if not changes:
        click.echo("💡 Nothing to update")
        return
    updated = _run(app.repository.update_task(project_id, target, changes))
    click.echo(f"✅ Updated '{updated.name}'")


@task.command('toggle')
@click.argument('project_id')
@click.argument('path')
@click.pass_obj
def task_toggle(app, project_id, path):
    """Flip the completion flag of the task at PATH."""
    toggled = _run(app.repository.toggle_task(project_id, _parse_path(path)))
    click.echo(f"{'✅' if toggled.completed else '⬜'} {toggled.name}")


@task.command('delete')
@click.argument('project_id')
@click.argument('path')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def task_delete(app, project_id, path, yes):
    """Delete the task at PATH together with its sub-tasks."""
    target = _parse_path(path)
    if target.is_root():
        raise click.BadParameter("PATH must name a task")
    if not yes:
        click.confirm("Delete this task and all of its sub-tasks?", abort=True)
    _run(app.repository.delete_task(project_id, target.parent, target.leaf.id))
    click.echo(f"✅ Deleted {target}")


@main.command()
@click.option('-u', '--user', 'user_id', default=None, help='User id (defaults to the configured user)')
@click.pass_obj
def mine(app, user_id):
    """List tasks assigned to a user across all projects."""
    aggregator = UserTaskAggregator(app.repository, app.auth)
    found = _run(aggregator.find_assigned(user_id))
    if app.repository.last_error:
        click.echo(f"⚠️  Warning: Error loading projects: {app.repository.last_error}")
    if not found:
        click.echo("📭 No assigned tasks")
        return
    for t in found:
        mark = "✅" if t.completed else "⬜"
        due = f"  📅 {t.deadline.isoformat()}" if t.deadline else ""
        click.echo(f"{mark} {t.name}  🗂️  {t.project_id}{due}")


if __name__ == "__main__":
    main()
