"""Abstract base class for notebook storage."""

from abc import ABC, abstractmethod

from sql_notebook.models.notebook import Notebook, NotebookEntry


class NotebookStore(ABC):
    """
    Abstract notebook storage interface.

    The store is the source of truth for reloads. Records follow the
    persisted camelCase shape::

        notebooks:         {id, title, projectId, createdAt}
        notebook_entries:  {id, createdAt, notebookId, userPrompt,
                            sqlQueries, outputs: [{version, chunks}]}

    Every method raises ``PersistenceError`` when the backend rejects the
    operation. Writes are attempted exactly once.
    """

    @abstractmethod
    async def create_notebook(self, notebook: Notebook) -> Notebook:
        """
        Persist a new notebook.

        Returns:
            The notebook as stored
        """
        ...

    @abstractmethod
    async def update_notebook_title(self, notebook_id: str, title: str) -> None:
        """
        Rename a notebook.

        Raises:
            NotebookNotFound: If the notebook doesn't exist
        """
        ...

    @abstractmethod
    async def delete_notebook(self, notebook_id: str) -> None:
        """Delete a notebook and its entries."""
        ...

    @abstractmethod
    async def list_notebooks(self, project_id: str) -> list[Notebook]:
        """List a project's notebooks, oldest first."""
        ...

    @abstractmethod
    async def create_entry(self, entry: NotebookEntry) -> NotebookEntry:
        """
        Persist a new entry.

        Returns:
            The entry as stored
        """
        ...

    @abstractmethod
    async def update_entry(self, entry: NotebookEntry) -> None:
        """
        Overwrite an entry's SQL queries and outputs.

        Raises:
            NotebookNotFound: If the entry doesn't exist
        """
        ...

    @abstractmethod
    async def list_entries(self, notebook_id: str) -> list[NotebookEntry]:
        """List a notebook's entries ordered by ``createdAt`` ascending."""
        ...

    @abstractmethod
    async def delete_entry(self, notebook_id: str, entry_id: str) -> None:
        """Delete one entry."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None
