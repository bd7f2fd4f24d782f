"""
Persistence normalization for project documents.

The document store refuses unset fields, so every optional value is given a
concrete default before a write. Functions here work on plain dicts and never
modify their input.
"""
from typing import Any, Dict, List, Mapping

TASK_DEFAULTS = {
    "description": "",
    "hours": 0,
    "cost_per_hour": 0,
    "deadline": None,
    "completed": False,
}

CUSTOMER_FIELDS = ("name", "phone", "address")
USER_FIELDS = ("full_name", "email")


def _or_default(value, default):
    return default if value is None else value


def normalize_user(user: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(user)
    for key in USER_FIELDS:
        result[key] = _or_default(result.get(key), "")
    return result


def normalize_task(task: Mapping[str, Any]) -> Dict[str, Any]:
    result = dict(task)
    for key, default in TASK_DEFAULTS.items():
        result[key] = _or_default(result.get(key), default)
    result["assigned_to"] = [normalize_user(u) for u in result.get("assigned_to") or []]
    result["children"] = normalize_tasks(result.get("children") or [])
    return result


def normalize_tasks(tasks: List[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [normalize_task(task) for task in tasks]


def normalize_project(project: Mapping[str, Any]) -> Dict[str, Any]:
    """Fill every optional field of a dumped project with its concrete default."""
    result = dict(project)
    result["description"] = _or_default(result.get("description"), "")
    customer = dict(result.get("customer") or {})
    for key in CUSTOMER_FIELDS:
        customer[key] = _or_default(customer.get(key), "")
    result["customer"] = customer
    result["type"] = "project"
    result["tasks"] = normalize_tasks(result.get("tasks") or [])
    return result
