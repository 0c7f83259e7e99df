"""Transport clients."""

from sql_notebook.client.visualiser import VisualiserClient

__all__ = ["VisualiserClient"]
