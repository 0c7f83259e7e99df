"""Segment content types."""

from dataclasses import dataclass
from enum import Enum


class OutputType(str, Enum):
    """Content kinds a segment may declare, in scan priority order."""

    SQL = "sql"
    TEXT = "text"
    TABLE = "table"
    CHART = "chart"


@dataclass(frozen=True)
class Segment:
    """One typed, delimited unit of content extracted from the stream.

    ``type`` is the lower-cased type token. It is an ``OutputType`` value
    for the built-in enumeration but stays a plain string so a grammar
    declared over a custom type list can produce it too.
    """

    type: str
    content: str

    @property
    def is_sql(self) -> bool:
        return self.type == OutputType.SQL.value
