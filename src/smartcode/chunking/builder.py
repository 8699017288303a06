"""
In-progress definitions shared by the segmenter and the member extractor.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from .classifier import SourceLine, header_ends_without_body, header_opens_body
from .indentation import closes_block
from .models import SIGNATURE_MAX_CHARS, Chunk
from .tokenizer import TokenEstimator

HeaderOutcome = Literal["continue", "body", "done"]

# Trimmed text at or below this many characters is noise, not a chunk.
MIN_CHUNK_CHARS = 20

# Kinds whose header may legitimately end without a body.
HEADER_ONLY_KINDS = frozenset({"interface-method", "member"})


@dataclass
class PendingAttributes:
    """Attribute lines (and comments between them) waiting for a definition."""

    lines: List[SourceLine] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.lines)

    def add(self, line: SourceLine) -> None:
        self.lines.append(line)

    def clear(self) -> None:
        self.lines = []

    def take(self) -> List[SourceLine]:
        taken, self.lines = self.lines, []
        return taken


@dataclass
class ChunkBuilder:
    """Accumulates one definition until its block ends."""

    start_line: int
    kind: str
    base_depth: int
    header: List[str]
    attributes: List[str] = field(default_factory=list)
    body: List[str] = field(default_factory=list)
    has_body: bool = False

    @classmethod
    def open(
        cls,
        line: SourceLine,
        kind: str,
        attributes: Optional[List[SourceLine]] = None,
    ) -> "ChunkBuilder":
        attributes = attributes or []
        return cls(
            start_line=attributes[0].number if attributes else line.number,
            kind=kind,
            base_depth=line.depth,
            header=[line.text],
            attributes=[attr.text for attr in attributes],
        )

    def header_outcome(self, text: str) -> HeaderOutcome:
        """Decide whether ``text`` completes the header."""
        if header_opens_body(text):
            self.has_body = True
            return "body"
        if self.kind in HEADER_ONLY_KINDS and header_ends_without_body(text):
            return "done"
        return "continue"

    def add_header_line(self, text: str) -> HeaderOutcome:
        self.header.append(text)
        return self.header_outcome(text)

    def accepts_body_line(self, line: SourceLine) -> bool:
        return not closes_block(line.depth, self.base_depth, line.info.exempt)

    def add_body_line(self, text: str) -> None:
        self.body.append(text)

    @property
    def end_line(self) -> int:
        return self.start_line + len(self.attributes) + len(self.header) + len(self.body) - 1

    def finalize(
        self,
        estimate: TokenEstimator,
        signature: Optional[str] = None,
        parent: Optional[str] = None,
    ) -> Optional[Chunk]:
        """Turn the builder into a chunk, or None when it is too small to keep."""
        text = "\n".join(self.attributes + self.header + self.body)
        if len(text.strip()) <= MIN_CHUNK_CHARS:
            return None
        return Chunk(
            start_line=self.start_line,
            end_line=self.end_line,
            kind=self.kind,  # type: ignore[arg-type]
            text=text,
            signature=signature or self.header[0].strip()[:SIGNATURE_MAX_CHARS],
            token_count=estimate(text),
            parent=parent,
        )
