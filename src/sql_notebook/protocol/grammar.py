"""Segment grammar: the start/end marker pairs that frame typed content.

A segment on the wire looks like::

    =====SQL=====select 1=====END SQL=====

The type token is matched case-insensitively, the ``=====`` punctuation and
the ``END `` keyword exactly. Marker patterns are compiled once per grammar,
in declaration order, which is also the scan priority order.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from sql_notebook.protocol.types import OutputType

MARKER_FENCE = "====="


@dataclass(frozen=True)
class MarkerPair:
    """Compiled start/end markers for one output type."""

    type: str
    start: re.Pattern[str]
    end: re.Pattern[str]

    @property
    def start_literal(self) -> str:
        return f"{MARKER_FENCE}{self.type.upper()}{MARKER_FENCE}"

    @property
    def end_literal(self) -> str:
        return f"{MARKER_FENCE}END {self.type.upper()}{MARKER_FENCE}"


def _build_pair(type_name: str) -> MarkerPair:
    token = re.escape(type_name.upper())
    fence = re.escape(MARKER_FENCE)
    return MarkerPair(
        type=type_name.lower(),
        start=re.compile(f"{fence}(?i:{token}){fence}"),
        end=re.compile(f"{fence}END (?i:{token}){fence}"),
    )


class SegmentGrammar:
    """
    Static marker table for a declared enumeration of output types.

    The enumeration is open: pass any ordered iterable of type names (or
    ``OutputType`` members). Order defines scan priority.
    """

    def __init__(self, output_types: Iterable[str | OutputType] | None = None):
        names = [
            t.value if isinstance(t, OutputType) else str(t)
            for t in (output_types if output_types is not None else OutputType)
        ]
        if not names:
            raise ValueError("A segment grammar needs at least one output type")

        seen: set[str] = set()
        pairs: list[MarkerPair] = []
        for name in names:
            key = name.strip().lower()
            if not key or key in seen:
                raise ValueError(f"Invalid or duplicate output type: {name!r}")
            seen.add(key)
            pairs.append(_build_pair(key))

        self._pairs: tuple[MarkerPair, ...] = tuple(pairs)
        self._by_type = {pair.type: pair for pair in pairs}
        self._max_start_length = max(len(pair.start_literal) for pair in pairs)

    @property
    def pairs(self) -> tuple[MarkerPair, ...]:
        """Marker pairs in scan priority order."""
        return self._pairs

    @property
    def types(self) -> list[str]:
        return [pair.type for pair in self._pairs]

    @property
    def max_start_length(self) -> int:
        """Length of the longest start marker."""
        return self._max_start_length

    def markers_for(self, type_name: str | OutputType) -> MarkerPair:
        key = type_name.value if isinstance(type_name, OutputType) else type_name.lower()
        try:
            return self._by_type[key]
        except KeyError:
            raise KeyError(f"Unknown output type: {type_name!r}") from None

    def frame(self, type_name: str | OutputType, content: str) -> str:
        """Wrap content in the markers for ``type_name``."""
        pair = self.markers_for(type_name)
        return f"{pair.start_literal}{content}{pair.end_literal}"

    def __contains__(self, type_name: object) -> bool:
        if isinstance(type_name, OutputType):
            return type_name.value in self._by_type
        return isinstance(type_name, str) and type_name.lower() in self._by_type

    def __repr__(self) -> str:
        return f"SegmentGrammar(types={self.types!r})"


DEFAULT_GRAMMAR = SegmentGrammar()
