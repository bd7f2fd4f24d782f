import copy
from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft202012Validator, SchemaError

from projectree.logs import get_logger
from projectree.models import Project
from projectree.recovery import SchemaValidationError

# Configure log for clear output
log = get_logger("data.validate")

# Keys the store keeps outside of the document body
STORE_MANAGED_KEYS = ("id",)


@lru_cache(maxsize=1)
def project_schema() -> Dict[str, Any]:
    """
    JSON schema for a stored project document, generated from the Pydantic model.

    Serialization mode marks every field required, which matches the
    normalized form the store expects.
    """
    schema = copy.deepcopy(Project.model_json_schema(mode="serialization"))
    schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    for key in STORE_MANAGED_KEYS:
        schema["properties"].pop(key, None)
        if key in schema.get("required", []):
            schema["required"].remove(key)
    Draft202012Validator.check_schema(schema)
    return schema


def document_errors(document: Dict[str, Any]) -> List[str]:
    """Return a readable message for every schema violation in ``document``."""
    try:
        validator = Draft202012Validator(project_schema())
    except SchemaError as e:
        log.error(f"Validation failed: The schema itself is invalid. Error: {e.message}")
        raise
    errors = []
    for error in sorted(validator.iter_errors(document), key=lambda e: list(e.absolute_path)):
        location = "/".join(str(p) for p in error.absolute_path) or "<document>"
        errors.append(f"{location}: {error.message}")
    return errors


def validate_document(document: Dict[str, Any]) -> None:
    """
    Validate a normalized project document before it is written.

    Raises:
        SchemaValidationError: listing every violation found.
    """
    errors = document_errors(document)
    if errors:
        for error in errors:
            log.error(f"  - {error}")
        raise SchemaValidationError("Project document FAILED validation: " + "; ".join(errors))
    log.debug(f"Project document '{document.get('name')}' is VALID")
