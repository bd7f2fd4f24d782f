import abc
from typing import Any, Dict, List, Optional

from projectree.logs import get_logger

log = get_logger("data.migration")

MigrationData = Dict[str, Any]

class Migration(abc.ABC):
    """
    An abstract base class for document shape migrations.

    Each concrete migration implements upgrade() and downgrade() and knows how
    to recognise documents it applies to.
    """
    NAME = None

    @abc.abstractmethod
    def applies_to(self, data: MigrationData) -> bool:
        """Return True when ``data`` is in the shape this migration upgrades from."""
        pass

    @abc.abstractmethod
    def upgrade(self, data: MigrationData) -> MigrationData:
        """
        Convert a document to the current shape.

        Args:
            data: The stored document.

        Returns:
            A new document dict; ``data`` is left untouched.
        """
        pass

    @abc.abstractmethod
    def downgrade(self, data: MigrationData) -> MigrationData:
        """
        Convert a current document back to the older shape.

        Args:
            data: A document in the current shape.

        Returns:
            A new document dict in the older shape.
        """
        pass


def _legacy_user_to_ref(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user.get("id", ""),
        "full_name": user.get("fullName", user.get("full_name", "")),
        "email": user.get("email", ""),
    }


def _ref_to_legacy_user(ref: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": ref["id"], "fullName": ref.get("full_name", ""), "email": ref.get("email", "")}


class LegacyDocumentMigration(Migration):
    """
    Deliverable/SubTask documents to the unified task tree.

    Older documents kept camelCase keys, a ``deliverables`` list whose items
    nest ``subTasks``, and a single ``assignedTo`` user per node.
    """
    NAME = "legacy_deliverables_to_tasks"
    LEGACY_KEYS = ("deliverables", "__id", "createdAt")

    def applies_to(self, data: MigrationData) -> bool:
        return any(key in data for key in self.LEGACY_KEYS)

    def _upgrade_node(self, node: Dict[str, Any]) -> Dict[str, Any]:
        assigned = node.get("assignedTo", node.get("assigned_to"))
        if assigned is None:
            assigned = []
        elif isinstance(assigned, dict):
            assigned = [assigned]

        deadline: Optional[str] = node.get("deadline") or None
        return {
            "id": node["id"],
            "name": node.get("name", ""),
            "description": node.get("description") or "",
            "hours": node.get("hours"),
            "cost_per_hour": node.get("costPerHour", node.get("cost_per_hour")),
            "deadline": deadline,
            "completed": bool(node.get("completed", False)),
            "assigned_to": [_legacy_user_to_ref(u) for u in assigned],
            "children": [self._upgrade_node(c) for c in node.get("subTasks", node.get("children")) or []],
        }

    def _downgrade_node(self, node: Dict[str, Any]) -> Dict[str, Any]:
        assigned: List[Dict[str, Any]] = node.get("assigned_to") or []
        if len(assigned) > 1:
            log.warning(f"Task {node['id']} has {len(assigned)} assignees; the legacy shape keeps only the first")
        result = {
            "id": node["id"],
            "name": node["name"],
            "description": node.get("description", ""),
            "completed": node.get("completed", False),
            "subTasks": [self._downgrade_node(c) for c in node.get("children") or []],
        }
        if node.get("hours") is not None:
            result["hours"] = node["hours"]
        if node.get("cost_per_hour") is not None:
            result["costPerHour"] = node["cost_per_hour"]
        if node.get("deadline"):
            result["deadline"] = node["deadline"]
        if assigned:
            result["assignedTo"] = _ref_to_legacy_user(assigned[0])
        return result

    def upgrade(self, data: MigrationData) -> MigrationData:
        upgraded = {
            "internal_id": data.get("__id", data.get("internal_id")),
            "name": data.get("name", ""),
            "description": data.get("description") or "",
            "customer": dict(data.get("customer") or {}),
            "created_at": data.get("createdAt", data.get("created_at")),
            "type": "project",
            "tasks": [self._upgrade_node(d) for d in data.get("deliverables", data.get("tasks")) or []],
        }
        if "id" in data:
            upgraded["id"] = data["id"]
        return {k: v for k, v in upgraded.items() if v is not None}

    def downgrade(self, data: MigrationData) -> MigrationData:
        downgraded = {
            "__id": data["internal_id"],
            "name": data["name"],
            "description": data.get("description", ""),
            "customer": dict(data.get("customer") or {}),
            "deliverables": [self._downgrade_node(t) for t in data.get("tasks") or []],
            "createdAt": data["created_at"],
            "type": "project",
        }
        if data.get("id"):
            downgraded["id"] = data["id"]
        return downgraded


MIGRATIONS: List[Migration] = [LegacyDocumentMigration()]


def upgrade_document(data: MigrationData) -> MigrationData:
    """Run every migration that recognises ``data``; current documents pass through unchanged."""
    for migration in MIGRATIONS:
        if migration.applies_to(data):
            log.info(f"Applying migration '{migration.NAME}'")
            data = migration.upgrade(data)
    return data
