"""Indentation depth helpers used to find block boundaries."""
from __future__ import annotations

TAB_WIDTH = 4


def depth(line: str) -> int:
    """Count leading whitespace columns, a tab counting as ``TAB_WIDTH``."""
    columns = 0
    for char in line:
        if char == "\t":
            columns += TAB_WIDTH
        elif char.isspace():
            columns += 1
        else:
            break
    return columns


def is_deeper(line_depth: int, base_depth: int) -> bool:
    return line_depth > base_depth


def closes_block(line_depth: int, base_depth: int, exempt: bool) -> bool:
    """
    True when a line ends a block opened at ``base_depth``.

    Blank and comment lines are ``exempt``: their own depth never ends a block.
    """
    return not exempt and line_depth <= base_depth
