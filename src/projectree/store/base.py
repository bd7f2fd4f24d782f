# projectree/store/base.py
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

Document = Dict[str, Any]


class DocumentStore(ABC):
    """Interface for pluggable, schema-less keyed document stores.

    Every method is a coroutine; a store failure is raised as
    ``PersistenceError``.
    """

    @abstractmethod
    async def list(self, collection: str) -> List[Tuple[str, Document]]:
        """List ``(id, document)`` pairs of a collection in a stable order."""
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Retrieve a document by its id, or None if not found."""
        ...

    @abstractmethod
    async def insert(self, collection: str, document: Document) -> str:
        """Store a new document and return its generated id."""
        ...

    @abstractmethod
    async def replace(self, collection: str, doc_id: str, document: Document) -> None:
        """Overwrite an existing document wholesale."""
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing id is not an error."""
        ...
