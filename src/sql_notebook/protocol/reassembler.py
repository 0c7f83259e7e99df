"""Stream buffer reassembler.

Network reads arrive in arbitrary sizes, so a marker or a multi-byte
character may straddle two reads. Every read is appended to one durable
text buffer; complete segments are cut out of it and everything else is
kept for the next read.
"""

import codecs
import re
from typing import Literal

from sql_notebook.core.exceptions import DecoderClosedError
from sql_notebook.protocol.grammar import DEFAULT_GRAMMAR, MarkerPair, SegmentGrammar
from sql_notebook.protocol.types import Segment
from sql_notebook.utils.logging import get_logger


logger = get_logger(__name__)

ScanPolicy = Literal["priority", "first_marker"]


class StreamReassembler:
    """
    Incrementally extract segments from a chunked byte stream.

    ``consume`` is called once per network read and returns every segment
    that became complete. ``flush`` is called at stream end until it
    returns ``None``; whatever is left after that is discarded.

    Scan policies:
    - ``priority``: look for start markers type by type in grammar order,
      every pass. Extraction order can differ from arrival order when types
      interleave in one buffer.
    - ``first_marker``: the start marker nearest the head of the buffer
      wins, ties broken by grammar order.

    In both policies a start marker without its end marker stops the scan
    until more bytes arrive.

    Text ahead of the earliest start marker can never become part of a
    segment and is dropped as soon as it is seen; with no start marker in
    the buffer only a tail long enough to hold a split marker is kept.
    """

    def __init__(
        self,
        grammar: SegmentGrammar | None = None,
        scan_policy: ScanPolicy = "priority",
        encoding: str = "utf-8",
    ):
        if scan_policy not in ("priority", "first_marker"):
            raise ValueError(f"Unknown scan policy: {scan_policy!r}")
        self._grammar = grammar or DEFAULT_GRAMMAR
        self._scan_policy = scan_policy
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._flushing = False
        self._closed = False
        self.bytes_received = 0
        self.segments_emitted = 0
        self.discarded_chars = 0

    @property
    def grammar(self) -> SegmentGrammar:
        return self._grammar

    @property
    def pending_text(self) -> str:
        """Decoded text retained for the next read."""
        return self._buffer

    @property
    def closed(self) -> bool:
        return self._closed

    def consume(self, raw: bytes | str) -> list[Segment]:
        """Append one read to the buffer and extract all complete segments."""
        if self._flushing:
            raise DecoderClosedError()

        if isinstance(raw, str):
            self._buffer += raw
            self.bytes_received += len(raw.encode("utf-8"))
        else:
            self._buffer += self._decoder.decode(raw)
            self.bytes_received += len(raw)

        return self.extract()

    def extract(self) -> list[Segment]:
        """Rescan the current buffer; yields nothing new without new input."""
        segments: list[Segment] = []
        while True:
            segment = self._extract_one()
            if segment is None:
                break
            segments.append(segment)
        return segments

    def flush(self) -> Segment | None:
        """
        Drain the buffer at end of stream, one segment per call.

        The first call finalizes the decoder. Once no complete segment is
        left, the remaining tail is dropped and ``None`` is returned from
        then on.
        """
        if self._closed:
            return None

        if not self._flushing:
            self._flushing = True
            self._buffer += self._decoder.decode(b"", final=True)

        segment = self._extract_one()
        if segment is not None:
            return segment

        if self._buffer.strip():
            logger.debug(
                "Discarding undelimited stream tail",
                discarded_chars=len(self._buffer),
            )
        self._discard(len(self._buffer))
        self._closed = True
        return None

    def _extract_one(self) -> Segment | None:
        starts = self._find_starts()
        if not starts:
            # Only a marker still arriving at the tail can matter.
            self._discard(len(self._buffer) - self._grammar.max_start_length + 1)
            return None

        head = min(match.start() for _, match in starts)
        if head:
            self._discard(head)
            starts = self._find_starts()

        if self._scan_policy == "priority":
            pair, start = starts[0]
        else:
            pair, start = min(starts, key=lambda found: found[1].start())

        end = pair.end.search(self._buffer, start.end())
        if end is None:
            # Wait for more bytes.
            return None

        content = self._buffer[start.end():end.start()].strip()
        self._buffer = self._buffer[:start.start()] + self._buffer[end.end():]
        self.segments_emitted += 1

        logger.debug(
            "Extracted segment",
            segment_type=pair.type,
            content_chars=len(content),
            buffer_size=len(self._buffer),
        )
        return Segment(type=pair.type, content=content)

    def _find_starts(self) -> list[tuple[MarkerPair, re.Match[str]]]:
        """First start marker of each type present, in grammar order."""
        starts = []
        for pair in self._grammar.pairs:
            match = pair.start.search(self._buffer)
            if match is not None:
                starts.append((pair, match))
        return starts

    def _discard(self, count: int) -> None:
        if count > 0:
            self._buffer = self._buffer[count:]
            self.discarded_chars += count
