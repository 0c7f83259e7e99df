"""Segment protocol: grammar, stream reassembly and routing.

``sql_notebook.protocol.router`` is imported by its full path; it depends
on the event and model layers, which in turn depend on this package.
"""

from sql_notebook.protocol.types import OutputType, Segment
from sql_notebook.protocol.grammar import DEFAULT_GRAMMAR, MarkerPair, SegmentGrammar
from sql_notebook.protocol.reassembler import ScanPolicy, StreamReassembler

__all__ = [
    "OutputType",
    "Segment",
    "DEFAULT_GRAMMAR",
    "MarkerPair",
    "SegmentGrammar",
    "ScanPolicy",
    "StreamReassembler",
]
