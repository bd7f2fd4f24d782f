class ProjectreeError(Exception):
    """Base exception for all projectree errors."""
    pass

class NotFoundError(ProjectreeError):
    """A project or task node is absent."""
    pass

class ProjectNotFoundError(NotFoundError):
    """No project document is stored under the requested id."""

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id

class ValidationFailure(ProjectreeError):
    """Input rejected before any data was changed."""
    pass

class InvalidPathError(ValidationFailure):
    """A task path string or sequence is malformed or empty where a node is required."""
    pass

class SchemaValidationError(ValidationFailure):
    """A normalized document does not match the project schema."""
    pass

class NodeNotFoundError(NotFoundError, ValidationFailure):
    """A task path does not resolve to a node in the tree; the edit is rejected."""

    def __init__(self, path):
        super().__init__(f"Node not found at path: {'/'.join(path) or '<root>'}")
        self.path = list(path)

class DataIntegrityError(ProjectreeError):
    """Stored data breaks an invariant the tree relies on."""
    pass

class DuplicateIdError(DataIntegrityError):
    """The same task id occurs more than once in a project tree."""

    def __init__(self, ids):
        self.ids = sorted(ids)
        super().__init__(f"Duplicate task ids in tree: {', '.join(self.ids)}")

class PersistenceError(ProjectreeError):
    """The document store rejected the call or could not be reached."""
    pass

class UnauthenticatedError(ProjectreeError):
    """An operation needs a signed-in user and there is none."""
    pass
