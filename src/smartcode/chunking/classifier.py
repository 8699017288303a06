"""
Single-line classification for Verse source.

Each line is matched against an ordered table of rules; the first rule whose
pattern matches decides the line's category. No rule looks beyond the line
it is given, multi-line constructs are assembled by the segmenter.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Literal, Optional, Pattern, Tuple

from .indentation import depth

LineCategory = Literal[
    "blank",
    "comment",
    "attribute",
    "directive",
    "definition",
    "other",
]

_SPECIFIERS = r"(?:<[^>]+>)*"
_NEWLINE_RE = re.compile(r"\r?\n")

BLANK_RE = re.compile(r"^\s*$")
COMMENT_RE = re.compile(r"^\s*#")
ATTRIBUTE_RE = re.compile(r"^\s*@\w+")
DIRECTIVE_RE = re.compile(r"^using\s*\{")
TYPE_DEF_RE = re.compile(
    rf"^(?P<indent>\s*)(?P<name>\w+){_SPECIFIERS}\s*:=\s*(?P<kind>class|struct|interface|enum)\b"
)
MODULE_RE = re.compile(rf"^(?P<indent>\s*)(?P<name>\w+){_SPECIFIERS}\s*:=\s*module\s*:")
EXTENSION_RE = re.compile(r"^(?P<indent>\s*)\([^)]+\)\.(?P<name>\w+)")
FUNCTION_COMPLETE_RE = re.compile(
    rf"^(?P<indent>\s*)(?P<name>\w+){_SPECIFIERS}\s*\([^)]*\)\s*{_SPECIFIERS}\s*:\s*\S+\s*=\s*$"
)
FUNCTION_INLINE_RE = re.compile(
    rf"^(?P<indent>\s*)(?P<name>\w+){_SPECIFIERS}\s*\([^)]*\)\s*{_SPECIFIERS}\s*:\s*[^\s=][^=]*=\s*\S"
)
FUNCTION_START_RE = re.compile(rf"^(?P<indent>\s*)(?P<name>\w+){_SPECIFIERS}\s*\(")
MEMBER_FIELD_RE = re.compile(rf"^(?P<indent>\s*)(?:var\s+)?(?P<name>\w+){_SPECIFIERS}\s*:[^=]*=")

# Header terminators, tested against continuation lines of a multi-line header.
HEADER_WITH_BODY_RE = re.compile(rf"\)\s*{_SPECIFIERS}\s*:\s*\S+\s*=\s*$")
HEADER_INLINE_BODY_RE = re.compile(rf"\)\s*{_SPECIFIERS}\s*:\s*[^\s=][^=]*=\s*\S")
HEADER_ONLY_RE = re.compile(rf"\)\s*{_SPECIFIERS}\s*:\s*\S+\s*$")


@dataclass(frozen=True)
class LineClass:
    """Classification of one line of text."""

    category: LineCategory
    kind: Optional[str] = None
    name: Optional[str] = None
    indent: str = ""
    header_complete: bool = False

    @property
    def is_definition(self) -> bool:
        return self.category == "definition"

    @property
    def exempt(self) -> bool:
        """Blank and comment lines never close a block."""
        return self.category in ("blank", "comment")


Matcher = Callable[[re.Match[str]], LineClass]


def _definition(kind: Optional[str] = None, complete: bool = True) -> Matcher:
    def build(match: re.Match[str]) -> LineClass:
        return LineClass(
            category="definition",
            kind=kind or match.group("kind"),
            name=match.group("name"),
            indent=match.group("indent"),
            header_complete=complete,
        )

    return build


def _extension(match: re.Match[str]) -> LineClass:
    return LineClass(
        category="definition",
        kind="extension",
        name=match.group("name"),
        indent=match.group("indent"),
        header_complete=header_opens_body(match.string),
    )


def _plain(category: LineCategory) -> Matcher:
    return lambda _match: LineClass(category=category)


# First match wins.
RULES: Tuple[Tuple[Pattern[str], Matcher], ...] = (
    (BLANK_RE, _plain("blank")),
    (COMMENT_RE, _plain("comment")),
    (ATTRIBUTE_RE, _plain("attribute")),
    (DIRECTIVE_RE, _plain("directive")),
    (TYPE_DEF_RE, _definition()),
    (MODULE_RE, _definition("module")),
    (EXTENSION_RE, _extension),
    (FUNCTION_COMPLETE_RE, _definition("function")),
    (FUNCTION_INLINE_RE, _definition("function")),
    (FUNCTION_START_RE, _definition("function", complete=False)),
)

OTHER = LineClass(category="other")


def classify(line: str) -> LineClass:
    """Classify ``line`` using the ordered rule table."""
    for pattern, build in RULES:
        match = pattern.match(line)
        if match:
            return build(match)
    return OTHER


def header_opens_body(line: str) -> bool:
    """True when ``line`` closes a header with a trailing ``=`` or an inline body."""
    return bool(HEADER_WITH_BODY_RE.search(line) or HEADER_INLINE_BODY_RE.search(line))


def header_ends_without_body(line: str) -> bool:
    return bool(HEADER_ONLY_RE.search(line))


def is_single_line_enum(line: str, kind: Optional[str]) -> bool:
    return kind == "enum" and "{" in line and "}" in line


@dataclass(frozen=True)
class SourceLine:
    """A line of input with its 1-based number, depth and classification."""

    number: int
    text: str
    depth: int
    info: LineClass

    @property
    def category(self) -> LineCategory:
        return self.info.category


def split_lines(text: str) -> List[str]:
    """Split on LF or CRLF; a trailing newline does not add an empty line."""
    lines = _NEWLINE_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_lines(text: str, first_line: int = 1) -> List[SourceLine]:
    """Split ``text`` into classified lines numbered from ``first_line``."""
    return [
        SourceLine(number=first_line + offset, text=line, depth=depth(line), info=classify(line))
        for offset, line in enumerate(split_lines(text))
    ]
