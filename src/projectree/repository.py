"""
ProjectRepository - owns the project cache and all reads and writes of project documents.

Every tree edit reads the whole project document, applies a pure edit from
``projectree.tree`` in memory and writes the whole document back. Writes are
normalized, checked for duplicate task ids and schema-validated first.

Error policy: failures are recorded in ``last_error`` at the operation
boundary. Mutating operations re-raise them; reads degrade to ``None`` or an
empty list.
"""
from typing import Any, Callable, List, Mapping, Optional, Tuple, TypeVar, Union

from pydantic import ValidationError

from .data.migration import upgrade_document
from .data.normalize import normalize_project
from .data.validate import validate_document
from .logs import get_logger
from .models import Project, Task
from .recovery import (
    DataIntegrityError,
    ProjectNotFoundError,
    ProjectreeError,
    ValidationFailure,
)
from .store.base import Document, DocumentStore
from . import tree
from .tree import PathLike

log = get_logger("repository")

R = TypeVar("R")

Edit = Callable[[List[Task]], Tuple[List[Task], R]]


class ProjectRepository:
    """Async CRUD over project documents with an owned, explicitly refreshed cache."""

    COLLECTION = "projects"
    # Assigned by the repository on create, never taken from the caller
    MANAGED_FIELDS = frozenset({"id", "internal_id", "created_at", "type"})

    def __init__(self, store: DocumentStore, collection: str = COLLECTION):
        self.store = store
        self.collection = collection
        self._projects: List[Project] = []
        self.stale = True
        self.loading = False
        self.last_error: Optional[ProjectreeError] = None

    # --- cache ---

    @property
    def projects(self) -> List[Project]:
        """Last known good snapshot of every project; see ``stale``."""
        return list(self._projects)

    def cached(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def invalidate(self) -> None:
        self.stale = True

    async def refresh(self) -> bool:
        """Re-fetch the project list into the cache; False leaves the cache stale."""
        await self.fetch_all()
        return not self.stale

    # --- document conversion ---

    def _record(self, operation: str, error: ProjectreeError) -> None:
        self.last_error = error
        log.error(f"{operation} failed: {error}")

    def _from_document(self, doc_id: str, data: Document) -> Project:
        try:
            return Project.model_validate({**upgrade_document(data), "id": doc_id})
        except (ValidationError, ValueError, AttributeError, KeyError, TypeError) as e:
            raise DataIntegrityError(f"Stored project {doc_id} is unreadable: {e}") from e

    def _to_document(self, project: Project) -> Document:
        tree.ensure_unique_ids(project.tasks)
        document = normalize_project(project.model_dump(mode="json", exclude={"id"}))
        validate_document(document)
        return document

    @staticmethod
    def _coerce(data: Union[Project, Mapping[str, Any]], drop=frozenset()) -> Project:
        if isinstance(data, Project):
            fields = data.model_dump(exclude=set(drop))
        else:
            fields = {k: v for k, v in data.items() if k not in drop}
        try:
            return Project.model_validate(fields)
        except ValidationError as e:
            raise ValidationFailure(f"Invalid project: {e}") from e

    async def _require(self, project_id: str) -> Project:
        data = await self.store.get(self.collection, project_id)
        if data is None:
            raise ProjectNotFoundError(project_id)
        return self._from_document(project_id, data)

    async def _after_mutation(self) -> None:
        self.stale = True
        if not await self.refresh():
            log.warning("Project cache is stale; the last change was saved but could not be re-read")

    # --- reads ---

    async def fetch(self, project_id: str) -> Optional[Project]:
        """Async: One project by store id, or None when absent or unreadable."""
        self.last_error = None
        self.loading = True
        try:
            data = await self.store.get(self.collection, project_id)
            if data is None:
                return None
            return self._from_document(project_id, data)
        except ProjectreeError as e:
            self._record(f"fetch {project_id}", e)
            return None
        finally:
            self.loading = False

    async def fetch_all(self) -> List[Project]:
        """
        Async: Every readable project in store order; also replaces the cached snapshot.

        An unreadable document is skipped and recorded in ``last_error``; the
        rest are still returned. A failed listing returns an empty list.
        """
        self.last_error = None
        self.loading = True
        try:
            documents = await self.store.list(self.collection)
        except ProjectreeError as e:
            self._record("fetch_all", e)
            return []
        finally:
            self.loading = False

        projects = []
        for doc_id, data in documents:
            try:
                projects.append(self._from_document(doc_id, data))
            except DataIntegrityError as e:
                self._record(f"fetch_all {doc_id}", e)
        self._projects = projects
        self.stale = False
        return list(projects)

    async def get_item_by_path(self, project_id: str, path: PathLike) -> Optional[Task]:
        """Async: The task at ``path`` in a project, or None."""
        project = await self.fetch(project_id)
        if project is None:
            return None
        try:
            return tree.resolve(project.tasks, path)
        except ProjectreeError as e:
            self._record(f"get_item_by_path {project_id}", e)
            return None

    # --- writes ---

    async def create(self, data: Union[Project, Mapping[str, Any]]) -> Project:
        """Async: Store a new project; internal id, timestamp and type are assigned here."""
        self.last_error = None
        self.loading = True
        try:
            project = self._coerce(data, self.MANAGED_FIELDS)
            doc_id = await self.store.insert(self.collection, self._to_document(project))
            project = project.model_copy(update={"id": doc_id})
            log.info(f"Created project {doc_id} ({project.internal_id}) '{project.name}'")
        except ProjectreeError as e:
            self._record("create", e)
            raise
        finally:
            self.loading = False
        await self._after_mutation()
        return project

    async def update(self, project_id: str, data: Union[Project, Mapping[str, Any]]) -> Project:
        """Async: Overwrite the whole stored document of ``project_id``."""
        self.last_error = None
        self.loading = True
        try:
            project = self._coerce(data, {"id"})
            await self.store.replace(self.collection, project_id, self._to_document(project))
            project = project.model_copy(update={"id": project_id})
            log.info(f"Updated project {project_id}")
        except ProjectreeError as e:
            self._record(f"update {project_id}", e)
            raise
        finally:
            self.loading = False
        await self._after_mutation()
        return project

    async def delete(self, project_id: str) -> None:
        """Async: Remove a project and its whole tree."""
        self.last_error = None
        self.loading = True
        try:
            await self.store.delete(self.collection, project_id)
            log.info(f"Deleted project {project_id}")
        except ProjectreeError as e:
            self._record(f"delete {project_id}", e)
            raise
        finally:
            self.loading = False
        await self._after_mutation()

    async def _edit(self, project_id: str, operation: str, edit: Edit) -> R:
        """Read the document, apply ``edit`` to its tree, write it back if it changed."""
        self.last_error = None
        self.loading = True
        try:
            project = await self._require(project_id)
            new_tasks, result = edit(project.tasks)
            changed = new_tasks is not project.tasks
            if changed:
                edited = project.model_copy(update={"tasks": new_tasks})
                await self.store.replace(self.collection, project_id, self._to_document(edited))
                log.info(f"{operation} in project {project_id}")
        except ProjectreeError as e:
            self._record(f"{operation} in {project_id}", e)
            raise
        finally:
            self.loading = False
        if changed:
            await self._after_mutation()
        return result

    async def add_task(self, project_id: str, parent_path: PathLike,
                       fields: Union[Task, Mapping[str, Any]]) -> Task:
        """Async: Append a new task under ``parent_path`` (empty path: a root deliverable)."""
        return await self._edit(project_id, "add_task",
                                lambda tasks: tree.insert_task(tasks, parent_path, fields))

    async def update_task(self, project_id: str, path: PathLike, changes: Mapping[str, Any]) -> Task:
        return await self._edit(project_id, "update_task",
                                lambda tasks: tree.patch_task(tasks, path, changes))

    async def delete_task(self, project_id: str, parent_path: PathLike, task_id: str) -> None:
        await self._edit(project_id, "delete_task",
                         lambda tasks: (tree.delete_task(tasks, parent_path, task_id), None))

    async def toggle_task(self, project_id: str, path: PathLike) -> Task:
        return await self._edit(project_id, "toggle_task",
                                lambda tasks: tree.toggle_completion(tasks, path))
