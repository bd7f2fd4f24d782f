"""
Pluggable async document stores.
"""
from projectree.store.base import Document, DocumentStore
from projectree.store.memory import InMemoryDocumentStore
from projectree.store.file import FileDocumentStore


def create_store(settings) -> DocumentStore:
    """Build the store named by ``settings.backend``."""
    if settings.backend == "memory":
        return InMemoryDocumentStore()
    return FileDocumentStore(settings.data_dir)


__all__ = [
    "Document",
    "DocumentStore",
    "InMemoryDocumentStore",
    "FileDocumentStore",
    "create_store",
]
