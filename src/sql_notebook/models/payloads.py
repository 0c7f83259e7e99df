"""Decoding of structured chunk payloads.

``table`` chunks carry a JSON array of row objects. Drawing the table is up
to the rendering layer; this module only shapes the data for it.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

from sql_notebook.models.notebook import Chunk
from sql_notebook.protocol.types import OutputType

_HEADER_SPLIT = re.compile(r"_|\.|\s")

Row = dict[str, Any]


def format_header(header: str) -> str:
    """``order_total`` / ``order.total`` / ``order total`` -> ``Order Total``."""
    return " ".join(word[:1].upper() + word[1:] for word in _HEADER_SPLIT.split(header))


def format_value(value: Any) -> str:
    if value is None:
        return "-"
    return str(value)


@dataclass
class TablePayload:
    """Rows of a table chunk, with columns taken from the first row."""

    rows: list[Row] = field(default_factory=list)

    @property
    def columns(self) -> list[str]:
        return list(self.rows[0].keys()) if self.rows else []

    @property
    def headers(self) -> list[str]:
        return [format_header(column) for column in self.columns]

    def formatted_rows(self) -> list[list[str]]:
        columns = self.columns
        return [[format_value(row.get(column)) for column in columns] for row in self.rows]

    @classmethod
    def from_json(cls, payload: str) -> "TablePayload":
        """
        Parse a JSON array of row objects.

        Raises:
            ValueError: If the payload is not a JSON array of objects
        """
        data = json.loads(payload)
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError("Table payload must be a JSON array of objects")
        return cls(rows=data)

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "TablePayload":
        if chunk.type != OutputType.TABLE.value:
            raise ValueError(f"Expected a table chunk, got {chunk.type!r}")
        return cls.from_json(chunk.content)
