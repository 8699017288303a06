"""
Chunk records shared by every chunking pass.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Literal, Optional

ChunkKind = Literal[
    "class",
    "struct",
    "interface",
    "enum",
    "module",
    "function",
    "extension",
    "interface-method",
    "member",
    "block",
]

TYPE_KINDS: frozenset[str] = frozenset({"class", "struct", "interface", "enum"})
COMPOSITE_KINDS: frozenset[str] = frozenset({"class", "struct"})

SIGNATURE_MAX_CHARS = 100
MEMBER_SIGNATURE_MAX_CHARS = 80


@dataclass(frozen=True)
class Chunk:
    """An immutable, line-addressed slice of a source file."""

    start_line: int
    end_line: int
    kind: ChunkKind
    text: str
    signature: str
    token_count: int
    parent: Optional[str] = None
    continuation: bool = False
    content_hash: str = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not 1 <= self.start_line <= self.end_line:
            raise ValueError(
                f"invalid line range {self.start_line}-{self.end_line}"
            )
        digest = hashlib.sha256(self.text.encode("utf-8")).hexdigest()
        object.__setattr__(self, "content_hash", digest)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def display_signature(self) -> str:
        if self.continuation:
            return f"(continued) {self.signature}"
        return self.signature

    def to_dict(self) -> dict:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "kind": self.kind,
            "text": self.text,
            "signature": self.signature,
            "token_count": self.token_count,
            "parent": self.parent,
            "continuation": self.continuation,
        }
