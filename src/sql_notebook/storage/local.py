"""Local filesystem notebook storage implementation."""

import asyncio
import json
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from sql_notebook.core.exceptions import NotebookNotFound, PersistenceError
from sql_notebook.models.notebook import Notebook, NotebookEntry
from sql_notebook.storage.base import NotebookStore
from sql_notebook.utils.logging import get_logger


logger = get_logger(__name__)


class LocalNotebookStore(NotebookStore):
    """
    Local filesystem notebook storage.

    Directory structure:
        {base_path}/
        ├── notebooks/
        │   └── {notebook_id}.json
        └── entries/
            └── {notebook_id}/
                ├── {entry_id}.json
                └── ...
    """

    def __init__(self, base_path: str = "./storage/notebooks"):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for notebook storage
        """
        self._base_path = Path(base_path)
        self._lock = asyncio.Lock()

    def _notebook_file(self, notebook_id: str) -> Path:
        return self._base_path / "notebooks" / f"{notebook_id}.json"

    def _entries_dir(self, notebook_id: str) -> Path:
        return self._base_path / "entries" / notebook_id

    def _entry_file(self, notebook_id: str, entry_id: str) -> Path:
        return self._entries_dir(notebook_id) / f"{entry_id}.json"

    async def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=2))

    async def _read_json(self, path: Path) -> dict[str, Any]:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            return json.loads(await f.read())

    async def _read_dir(self, path: Path) -> list[dict[str, Any]]:
        if not await aiofiles.os.path.isdir(path):
            return []
        records = []
        for name in sorted(await aiofiles.os.listdir(path)):
            if name.endswith(".json"):
                records.append(await self._read_json(path / name))
        return records

    # -------------------------------------------------------------------------
    # Notebooks
    # -------------------------------------------------------------------------

    async def create_notebook(self, notebook: Notebook) -> Notebook:
        path = self._notebook_file(notebook.id)
        async with self._lock:
            if await aiofiles.os.path.exists(path):
                raise PersistenceError(
                    f"Notebook already exists: {notebook.id}",
                    operation="create_notebook",
                )
            try:
                await self._write_json(path, notebook.to_record())
            except OSError as e:
                raise PersistenceError(
                    f"Failed to create notebook: {e}", operation="create_notebook"
                ) from e

        logger.debug("Created notebook", notebook_id=notebook.id)
        return notebook

    async def update_notebook_title(self, notebook_id: str, title: str) -> None:
        path = self._notebook_file(notebook_id)
        async with self._lock:
            if not await aiofiles.os.path.exists(path):
                raise NotebookNotFound(
                    f"Notebook not found: {notebook_id}", operation="update_notebook_title"
                )
            try:
                record = await self._read_json(path)
                record["title"] = title
                await self._write_json(path, record)
            except (OSError, ValueError) as e:
                raise PersistenceError(
                    f"Failed to update notebook: {e}", operation="update_notebook_title"
                ) from e

    async def delete_notebook(self, notebook_id: str) -> None:
        path = self._notebook_file(notebook_id)
        entries_dir = self._entries_dir(notebook_id)
        async with self._lock:
            if not await aiofiles.os.path.exists(path):
                raise NotebookNotFound(
                    f"Notebook not found: {notebook_id}", operation="delete_notebook"
                )
            try:
                if await aiofiles.os.path.isdir(entries_dir):
                    for name in await aiofiles.os.listdir(entries_dir):
                        await aiofiles.os.remove(entries_dir / name)
                    await aiofiles.os.rmdir(entries_dir)
                await aiofiles.os.remove(path)
            except OSError as e:
                raise PersistenceError(
                    f"Failed to delete notebook: {e}", operation="delete_notebook"
                ) from e

        logger.debug("Deleted notebook", notebook_id=notebook_id)

    async def list_notebooks(self, project_id: str) -> list[Notebook]:
        try:
            records = await self._read_dir(self._base_path / "notebooks")
            notebooks = [Notebook.from_record(r) for r in records]
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Failed to list notebooks: {e}", operation="list_notebooks"
            ) from e

        notebooks = [n for n in notebooks if n.project_id == project_id]
        return sorted(notebooks, key=lambda n: n.created_at)

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    async def create_entry(self, entry: NotebookEntry) -> NotebookEntry:
        path = self._entry_file(entry.notebook_id, entry.id)
        async with self._lock:
            if not await aiofiles.os.path.exists(self._notebook_file(entry.notebook_id)):
                raise NotebookNotFound(
                    f"Notebook not found: {entry.notebook_id}", operation="create_entry"
                )
            if await aiofiles.os.path.exists(path):
                raise PersistenceError(
                    f"Entry already exists: {entry.id}", operation="create_entry"
                )
            try:
                await self._write_json(path, entry.to_record())
            except OSError as e:
                raise PersistenceError(
                    f"Failed to create entry: {e}", operation="create_entry"
                ) from e

        logger.debug("Created entry", entry_id=entry.id, notebook_id=entry.notebook_id)
        return entry

    async def update_entry(self, entry: NotebookEntry) -> None:
        path = self._entry_file(entry.notebook_id, entry.id)
        async with self._lock:
            if not await aiofiles.os.path.exists(path):
                raise NotebookNotFound(
                    f"Entry not found: {entry.id}", operation="update_entry"
                )
            try:
                await self._write_json(path, entry.to_record())
            except OSError as e:
                raise PersistenceError(
                    f"Failed to update entry: {e}", operation="update_entry"
                ) from e

    async def list_entries(self, notebook_id: str) -> list[NotebookEntry]:
        try:
            records = await self._read_dir(self._entries_dir(notebook_id))
            entries = [NotebookEntry.from_record(r) for r in records]
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Failed to list entries: {e}", operation="list_entries"
            ) from e

        return sorted(entries, key=lambda e: e.created_at)

    async def delete_entry(self, notebook_id: str, entry_id: str) -> None:
        path = self._entry_file(notebook_id, entry_id)
        async with self._lock:
            if not await aiofiles.os.path.exists(path):
                raise NotebookNotFound(
                    f"Entry not found: {entry_id}", operation="delete_entry"
                )
            try:
                await aiofiles.os.remove(path)
            except OSError as e:
                raise PersistenceError(
                    f"Failed to delete entry: {e}", operation="delete_entry"
                ) from e
