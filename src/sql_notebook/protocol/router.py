"""Segment router: folds extracted segments into a notebook entry."""

from sql_notebook.events.emitter import EventEmitter
from sql_notebook.events.models import EntryUpdatedEvent
from sql_notebook.models.notebook import NotebookEntry
from sql_notebook.protocol.types import Segment
from sql_notebook.utils.logging import get_logger


logger = get_logger(__name__)


class SegmentRouter:
    """
    Apply segments to an entry and publish each mutation.

    SQL segments go to ``entry.sql_queries``; every other type becomes a
    chunk of the entry's current output, created lazily as version 1.
    Nothing is ever removed or reordered once appended.
    """

    def __init__(
        self,
        emitter: EventEmitter | None = None,
        submission_id: str | None = None,
    ):
        self._emitter = emitter
        self._submission_id = submission_id
        self.applied = 0

    def route(self, entry: NotebookEntry, segment: Segment) -> None:
        """Apply one segment, then publish the updated entry."""
        if segment.is_sql:
            entry.append_sql(segment.content)
        else:
            entry.append_chunk(segment.type, segment.content)
        self.applied += 1

        logger.debug(
            "Routed segment",
            entry_id=entry.id,
            segment_type=segment.type,
            sql_queries=len(entry.sql_queries),
        )

        if self._emitter is not None:
            self._emitter.emit(
                EntryUpdatedEvent.create(
                    entry,
                    segment_type=segment.type,
                    submission_id=self._submission_id,
                )
            )

    def route_all(self, entry: NotebookEntry, segments: list[Segment]) -> None:
        for segment in segments:
            self.route(entry, segment)
