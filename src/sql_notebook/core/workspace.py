"""Notebook workspace state shared with the rendering layer."""

from dataclasses import dataclass, field

from sql_notebook.models.notebook import Notebook, NotebookEntry


@dataclass
class NotebookWorkspace:
    """
    Everything the notebook view shows, owned by the coordinator.

    The decoding core never reads this; it only receives the entry being
    built. ``busy`` is set for the whole of a submission and blocks a
    second one.
    """

    project_id: str
    notebooks: list[Notebook] = field(default_factory=list)
    selected_notebook_id: str | None = None
    entries: list[NotebookEntry] = field(default_factory=list)
    busy: bool = False

    def find_notebook(self, notebook_id: str) -> Notebook | None:
        for notebook in self.notebooks:
            if notebook.id == notebook_id:
                return notebook
        return None

    @property
    def selected_notebook(self) -> Notebook | None:
        if self.selected_notebook_id is None:
            return None
        return self.find_notebook(self.selected_notebook_id)

    def remove_entry(self, entry_id: str) -> bool:
        before = len(self.entries)
        self.entries = [entry for entry in self.entries if entry.id != entry_id]
        return len(self.entries) != before

    def recent_entries(self, window: int) -> list[NotebookEntry]:
        """The trailing ``window`` entries, oldest first."""
        if window <= 0:
            return []
        return self.entries[-window:]
