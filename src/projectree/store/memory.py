# projectree/store/memory.py
"""
Async in-memory document store implementation.
"""
import copy
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from projectree.recovery import PersistenceError
from projectree.store.base import Document, DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """A simple in-memory document store with async interface.

    Documents are deep-copied on the way in and out, so callers never share
    state with the store. Nothing persists across restarts.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Document]] = {}

    def _collection(self, collection: str) -> Dict[str, Document]:
        return self._data.setdefault(collection, {})

    async def list(self, collection: str) -> List[Tuple[str, Document]]:
        return [(doc_id, copy.deepcopy(doc)) for doc_id, doc in self._collection(collection).items()]

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self._collection(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def insert(self, collection: str, document: Document) -> str:
        doc_id = uuid4().hex
        self._collection(collection)[doc_id] = copy.deepcopy(document)
        return doc_id

    async def replace(self, collection: str, doc_id: str, document: Document) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise PersistenceError(f"No document {collection}/{doc_id} to replace")
        docs[doc_id] = copy.deepcopy(document)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)
