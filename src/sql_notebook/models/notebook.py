"""Notebook data models.

Records are persisted and sent over the wire in camelCase
(``notebookId``, ``sqlQueries`` ...); Python code uses snake_case
attributes. Both spellings are accepted on input.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from sql_notebook.protocol.types import OutputType


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model with camelCase wire aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_record(cls, data: dict[str, Any]):
        return cls.model_validate(data)


class Chunk(CamelModel):
    """Content of one non-SQL segment attached to an output."""

    type: str
    content: str

    @field_validator("type")
    @classmethod
    def _not_sql(cls, value: str) -> str:
        value = value.lower()
        if value == OutputType.SQL.value:
            raise ValueError("SQL segments belong in sqlQueries, not output chunks")
        return value


class Output(CamelModel):
    """One versioned, append-only collection of chunks."""

    version: int = Field(default=1, ge=1)
    chunks: list[Chunk] = Field(default_factory=list)


class NotebookEntry(CamelModel):
    """One user prompt with the SQL and outputs streamed back for it."""

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_utcnow)
    notebook_id: str
    user_prompt: str
    sql_queries: list[str] = Field(default_factory=list)
    outputs: list[Output] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sql_queries and not self.outputs

    def append_sql(self, sql: str) -> None:
        self.sql_queries.append(sql)

    def current_output(self) -> Output:
        """Latest output version, created lazily as version 1."""
        if not self.outputs:
            self.outputs.append(Output(version=1))
        return self.outputs[-1]

    def append_chunk(self, output_type: str, content: str) -> Chunk:
        chunk = Chunk(type=output_type, content=content)
        self.current_output().chunks.append(chunk)
        return chunk

    def snapshot(self) -> "NotebookEntry":
        """Deep copy handed to observers so later appends don't leak in."""
        return self.model_copy(deep=True)


class Notebook(CamelModel):
    """A titled collection of entries within a project."""

    id: str = Field(default_factory=_new_id)
    title: str
    project_id: str
    created_at: datetime = Field(default_factory=_utcnow)


class SearchRequest(CamelModel):
    """Payload that opens a search stream."""

    project_id: str
    chat_history: list[NotebookEntry] = Field(default_factory=list)
    notebook_id: str
    notebook_entry_id: str
    version: int = Field(default=1, ge=1)


class TitleRequest(CamelModel):
    """Payload for the notebook naming request."""

    project_id: str
    notebook_id: str
    user_prompt: str
