"""
Top-level segmentation of Verse source.

A three-state machine walks the classified lines once:

``idle``
    looking for a definition start, buffering attributes;
``header``
    accumulating a multi-line function or extension header;
``body``
    accumulating lines indented deeper than the definition.

When a body ends, the line that ended it is handled again in the ``idle``
state within the same step, so sibling definitions are picked up back to back.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Sequence

from .builder import ChunkBuilder, PendingAttributes
from .classifier import SourceLine, is_single_line_enum
from .models import TYPE_KINDS, Chunk
from .tokenizer import TokenEstimator, estimate_tokens

ScanState = Literal["idle", "header", "body"]


@dataclass
class _Scan:
    estimate: TokenEstimator
    state: ScanState = "idle"
    builder: Optional[ChunkBuilder] = None
    pending: PendingAttributes = field(default_factory=PendingAttributes)
    chunks: List[Chunk] = field(default_factory=list)

    def emit(self) -> None:
        if self.builder is not None:
            chunk = self.builder.finalize(self.estimate)
            if chunk is not None:
                self.chunks.append(chunk)
        self.builder = None
        self.state = "idle"

    def step(self, line: SourceLine) -> None:
        builder = self.builder
        if builder is None:
            self.scan_idle(line)
            return
        if self.state == "body":
            if builder.accepts_body_line(line):
                builder.add_body_line(line.text)
                return
            self.emit()
        elif self.state == "header":
            outcome = builder.add_header_line(line.text)
            if outcome == "body":
                self.state = "body"
            elif outcome == "done":
                self.emit()
            return
        self.scan_idle(line)

    def scan_idle(self, line: SourceLine) -> None:
        category = line.category
        if category in ("blank", "directive", "other"):
            self.pending.clear()
            return
        if category == "comment":
            if self.pending:
                self.pending.add(line)
            return
        if category == "attribute":
            self.pending.add(line)
            return

        info = line.info
        kind = info.kind or "function"
        self.builder = ChunkBuilder.open(line, kind, self.pending.take())
        if kind in TYPE_KINDS or kind == "module":
            if is_single_line_enum(line.text, kind):
                self.emit()
                return
            self.builder.has_body = True
            self.state = "body"
        elif info.header_complete:
            self.builder.has_body = True
            self.state = "body"
        else:
            self.state = "header"


def segment(
    lines: Sequence[SourceLine],
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Split classified lines into non-overlapping top-level chunks."""
    scan = _Scan(estimate=estimate)
    for line in lines:
        scan.step(line)
    # An unterminated header or body at end of input is kept.
    scan.emit()
    return scan.chunks
