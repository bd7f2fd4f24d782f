# projectree/store/file.py
"""
Async file-based document store implementation.
"""
import asyncio
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple, Union
from uuid import uuid4

import aiofiles

from projectree.data.io import DATA_YAML, atomic_write, loads
from projectree.logs import get_logger
from projectree.recovery import PersistenceError
from projectree.store.base import Document, DocumentStore

logger = get_logger("store.file")


class FileDocumentStore(DocumentStore):
    """
    An async document store that keeps one YAML file per document.

    Layout is ``<directory>/<collection>/<id>.yml``. Reads go through
    aiofiles; writes use an atomic replace run in the default executor.
    """

    SUFFIX = ".yml"

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _collection_dir(self, collection: str) -> Path:
        return self.directory / collection

    def _get_path(self, collection: str, doc_id: str) -> Path:
        if not doc_id or "/" in doc_id or doc_id.startswith("."):
            raise PersistenceError(f"Invalid document id: {doc_id!r}")
        return self._collection_dir(collection) / f"{doc_id}{self.SUFFIX}"

    async def _read(self, file_path: Path) -> Document:
        try:
            async with aiofiles.open(file_path, 'r', encoding='utf-8') as f:
                text = await f.read()
        except OSError as e:
            logger.error(f"Failed to read document {file_path}: {e}")
            raise PersistenceError(f"Failed to read document {file_path}: {e}") from e
        return loads(DATA_YAML, text, file_path)

    async def _write(self, file_path: Path, document: Document) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, partial(atomic_write, DATA_YAML, file_path, document, create_dirs=True)
        )

    async def list(self, collection: str) -> List[Tuple[str, Document]]:
        folder = self._collection_dir(collection)
        if not folder.exists():
            return []
        try:
            loop = asyncio.get_running_loop()
            files = await loop.run_in_executor(None, lambda: sorted(folder.glob(f"*{self.SUFFIX}")))
        except OSError as e:
            logger.error(f"Failed to list {collection}: {e}")
            raise PersistenceError(f"Failed to list {collection}: {e}") from e
        return [(f.stem, await self._read(f)) for f in files]

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        file_path = self._get_path(collection, doc_id)
        if not file_path.exists():
            return None
        return await self._read(file_path)

    async def insert(self, collection: str, document: Document) -> str:
        doc_id = uuid4().hex
        await self._write(self._get_path(collection, doc_id), document)
        logger.debug(f"Inserted {collection}/{doc_id}")
        return doc_id

    async def replace(self, collection: str, doc_id: str, document: Document) -> None:
        file_path = self._get_path(collection, doc_id)
        if not file_path.exists():
            raise PersistenceError(f"No document {collection}/{doc_id} to replace")
        await self._write(file_path, document)

    async def delete(self, collection: str, doc_id: str) -> None:
        file_path = self._get_path(collection, doc_id)
        if not file_path.exists():
            return
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, file_path.unlink)
        except OSError as e:
            logger.error(f"Failed to delete document {collection}/{doc_id}: {e}")
            raise PersistenceError(f"Failed to delete {collection}/{doc_id}: {e}") from e
