"""
Path resolution and pure edits over a project's task tree.

Every mutator takes the current root list and returns a new one. Only the
nodes on the way from the root to the edited node are copied; every other
subtree is carried over as the same object.
"""

from collections import Counter
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from .models import PathItem, Task, TaskPath, new_task_id
from .recovery import (
    DuplicateIdError,
    InvalidPathError,
    NodeNotFoundError,
    ValidationFailure,
)
from .logs import get_logger

log = get_logger("tree")

PathLike = Union[TaskPath, Sequence[Union[PathItem, str]], None]

STRUCTURAL_FIELDS = frozenset({"id", "children"})


def _reject_unknown(keys) -> None:
    unknown = set(keys) - set(Task.model_fields)
    if unknown:
        raise ValidationFailure(f"Unknown task fields: {', '.join(sorted(unknown))}")


def path_ids(path: PathLike) -> List[str]:
    """Reduce any accepted path form to its list of node ids."""
    if path is None:
        return []
    if isinstance(path, str):
        return TaskPath(path).ids
    if isinstance(path, TaskPath):
        return path.ids
    return [item.id if isinstance(item, PathItem) else item for item in path]


# --- Path Resolver ---

def resolve(roots: Sequence[Task], path: PathLike) -> Optional[Task]:
    """Return the node at ``path`` or None when any segment does not match."""
    ids = path_ids(path)
    if not ids:
        raise InvalidPathError("The empty path names the root list, not a node")

    candidates = roots
    node = None
    for node_id in ids:
        node = next((t for t in candidates if t.id == node_id), None)
        if node is None:
            return None
        candidates = node.children
    return node


def children_at(roots: Sequence[Task], path: PathLike) -> Optional[List[Task]]:
    """Return a copy of the child list addressed by ``path``; the empty path is the root list."""
    ids = path_ids(path)
    if not ids:
        return list(roots)
    node = resolve(roots, ids)
    return None if node is None else list(node.children)


def walk(roots: Sequence[Task], prefix: Sequence[str] = ()) -> Iterator[Tuple[List[str], Task]]:
    """Depth-first, parent before children; yields ``(path_ids, task)``."""
    for task in roots:
        here = list(prefix) + [task.id]
        yield here, task
        yield from walk(task.children, here)


def find_all(roots: Sequence[Task], task_id: str) -> List[Tuple[List[str], Task]]:
    """Flat scan of the whole tree for every node carrying ``task_id``.

    This ignores path scoping. It is only safe to act on its result when
    exactly one match comes back; see ``locate``.
    """
    return [(ids, task) for ids, task in walk(roots) if task.id == task_id]


def locate(roots: Sequence[Task], task_id: str) -> Optional[Tuple[List[str], Task]]:
    """Find a node by id anywhere in the tree, refusing ambiguous ids."""
    matches = find_all(roots, task_id)
    if len(matches) > 1:
        raise DuplicateIdError([task_id])
    return matches[0] if matches else None


def duplicate_ids(roots: Sequence[Task]) -> List[str]:
    counts = Counter(task.id for _, task in walk(roots))
    return sorted(task_id for task_id, count in counts.items() if count > 1)


def ensure_unique_ids(roots: Sequence[Task]) -> None:
    dupes = duplicate_ids(roots)
    if dupes:
        raise DuplicateIdError(dupes)


# --- Tree Mutator ---

def _replace_children(roots: List[Task], ids: List[str],
                      edit: Callable[[List[Task]], List[Task]], walked: List[str]) -> List[Task]:
    """Copy the spine down to the child list at ``ids`` and apply ``edit`` to it."""
    if not ids:
        return edit(roots)

    head, rest = ids[0], ids[1:]
    here = walked + [head]
    for index, node in enumerate(roots):
        if node.id == head:
            new_children = _replace_children(node.children, rest, edit, here)
            if new_children is node.children:
                return roots
            updated = list(roots)
            updated[index] = node.model_copy(update={"children": new_children})
            return updated
    raise NodeNotFoundError(here)


def _build_task(fields: Union[Task, Mapping[str, Any]], task_id: str) -> Task:
    if isinstance(fields, Task):
        data = fields.model_dump(exclude=STRUCTURAL_FIELDS)
    else:
        data = {k: v for k, v in fields.items() if k not in STRUCTURAL_FIELDS}
        _reject_unknown(data)
    try:
        return Task.model_validate({**data, "id": task_id, "children": []})
    except ValidationError as e:
        raise ValidationFailure(f"Invalid task fields: {e}") from e


def insert_task(roots: List[Task], parent_path: PathLike,
                fields: Union[Task, Mapping[str, Any]]) -> Tuple[List[Task], Task]:
    """Append a new node with a fresh id under the node at ``parent_path``.

    Any ``id`` or ``children`` in ``fields`` are ignored; the new node always
    starts as a leaf.
    """
    ids = path_ids(parent_path)
    existing = {task.id for _, task in walk(roots)}
    task_id = new_task_id()
    while task_id in existing:
        task_id = new_task_id()
    task = _build_task(fields, task_id)

    new_roots = _replace_children(roots, ids, lambda children: list(children) + [task], [])
    log.debug(f"Inserted task {task.id} under {'/'.join(ids) or '<root>'}")
    return new_roots, task


def patch_task(roots: List[Task], path: PathLike,
               changes: Mapping[str, Any]) -> Tuple[List[Task], Task]:
    """Shallow-merge ``changes`` into the node at exactly ``path``."""
    ids = path_ids(path)
    if not ids:
        raise InvalidPathError("Cannot patch the root list")
    structural = STRUCTURAL_FIELDS.intersection(changes)
    if structural:
        raise ValidationFailure(f"Cannot patch structural fields: {', '.join(sorted(structural))}")
    _reject_unknown(changes)

    node = resolve(roots, ids)
    if node is None:
        raise NodeNotFoundError(ids)

    try:
        merged = Task.model_validate({**node.model_dump(exclude={"children"}), **changes})
    except ValidationError as e:
        raise ValidationFailure(f"Invalid task fields: {e}") from e
    patched = merged.model_copy(update={"children": node.children})

    def swap(children: List[Task]) -> List[Task]:
        return [patched if t is node else t for t in children]

    new_roots = _replace_children(roots, ids[:-1], swap, [])
    log.debug(f"Patched task {node.id}: {', '.join(changes)}")
    return new_roots, patched


def delete_task(roots: List[Task], parent_path: PathLike, task_id: str) -> List[Task]:
    """Remove the direct child ``task_id`` of the node at ``parent_path``.

    The removed node takes its whole subtree with it. Deleting an id that is
    not there returns ``roots`` itself.
    """
    ids = path_ids(parent_path)

    def drop(children: List[Task]) -> List[Task]:
        kept = [t for t in children if t.id != task_id]
        if len(kept) == len(children):
            return children
        return kept

    new_roots = _replace_children(roots, ids, drop, [])
    if new_roots is roots:
        log.debug(f"Task {task_id} already absent under {'/'.join(ids) or '<root>'}")
    return new_roots


def toggle_completion(roots: List[Task], path: PathLike) -> Tuple[List[Task], Task]:
    ids = path_ids(path)
    node = resolve(roots, ids)
    if node is None:
        raise NodeNotFoundError(ids)
    return patch_task(roots, ids, {"completed": not node.completed})
