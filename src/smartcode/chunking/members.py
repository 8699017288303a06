"""
Promotion of first-level members out of class, struct and interface chunks.

The parent chunk is kept as is; members found directly inside it are added
as separate chunks qualified with the parent's name. Definitions nested
inside a member's own body stay part of that member.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .builder import ChunkBuilder, PendingAttributes
from .classifier import (
    FUNCTION_START_RE,
    MEMBER_FIELD_RE,
    SourceLine,
    read_lines,
)
from .models import COMPOSITE_KINDS, MEMBER_SIGNATURE_MAX_CHARS, Chunk
from .tokenizer import TokenEstimator, estimate_tokens

_IDENTIFIER_RE = re.compile(r"^\s*(\w+)")

EXTRACTABLE_KINDS = COMPOSITE_KINDS | {"interface"}


@dataclass
class _MemberScan:
    parent_name: str
    parent_depth: int
    member_kind: str
    estimate: TokenEstimator
    member_depth: Optional[int] = None
    builder: Optional[ChunkBuilder] = None
    in_header: bool = False
    pending: PendingAttributes = field(default_factory=PendingAttributes)
    members: List[Chunk] = field(default_factory=list)

    def emit(self) -> None:
        if self.builder is not None:
            signature = (
                f"{self.parent_name}::"
                f"{self.builder.header[0].strip()[:MEMBER_SIGNATURE_MAX_CHARS]}"
            )
            chunk = self.builder.finalize(
                self.estimate, signature=signature, parent=self.parent_name
            )
            if chunk is not None:
                self.members.append(chunk)
        self.builder = None
        self.in_header = False

    def step(self, line: SourceLine) -> None:
        if self.builder is not None:
            if self.in_header:
                outcome = self.builder.add_header_line(line.text)
                if outcome == "body":
                    self.in_header = False
                elif outcome == "done":
                    self.emit()
                return
            if self.builder.accepts_body_line(line):
                self.builder.add_body_line(line.text)
                return
            self.emit()
        self.scan_idle(line)

    def scan_idle(self, line: SourceLine) -> None:
        if line.category == "blank":
            self.pending.clear()
            return
        if line.category == "comment":
            if self.pending:
                self.pending.add(line)
            return
        if line.depth <= self.parent_depth:
            self.pending.clear()
            return
        if self.member_depth is None:
            self.member_depth = line.depth
        if line.depth != self.member_depth:
            self.pending.clear()
            return
        if line.category == "attribute":
            self.pending.add(line)
            return

        if FUNCTION_START_RE.match(line.text):
            self.builder = ChunkBuilder.open(line, self.member_kind, self.pending.take())
            outcome = self.builder.header_outcome(line.text)
            if outcome == "done":
                self.emit()
            else:
                self.in_header = outcome == "continue"
            return
        if MEMBER_FIELD_RE.match(line.text):
            self.builder = ChunkBuilder.open(line, "member", self.pending.take())
            self.builder.has_body = True
            return
        self.pending.clear()


def _header_index(lines: Sequence[SourceLine]) -> Optional[int]:
    for index, line in enumerate(lines):
        if line.category not in ("attribute", "comment"):
            return index
    return None


def members_of(chunk: Chunk, estimate: TokenEstimator = estimate_tokens) -> List[Chunk]:
    """Extract the first-level members of a type chunk."""
    lines = read_lines(chunk.text, first_line=chunk.start_line)
    header_index = _header_index(lines)
    if header_index is None:
        return []
    header = lines[header_index]
    name_match = _IDENTIFIER_RE.match(header.text)
    scan = _MemberScan(
        parent_name=name_match.group(1) if name_match else "Unknown",
        parent_depth=header.depth,
        member_kind="interface-method" if chunk.kind == "interface" else "member",
        estimate=estimate,
    )
    for line in lines[header_index + 1 :]:
        scan.step(line)
    scan.emit()
    return scan.members


def extract_members(
    chunks: Sequence[Chunk],
    estimate: TokenEstimator = estimate_tokens,
) -> List[Chunk]:
    """Return ``chunks`` with each type chunk followed by its members."""
    result: List[Chunk] = []
    for chunk in chunks:
        result.append(chunk)
        if chunk.kind in EXTRACTABLE_KINDS and not chunk.continuation:
            result.extend(members_of(chunk, estimate))
    return result
