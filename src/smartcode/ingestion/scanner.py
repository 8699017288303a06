"""
Workspace discovery.

Finds the files worth indexing: directories and names matching an exclude
glob are pruned, only configured extensions are kept and oversized files are
skipped.
"""
from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from ..logger import get_logger
from ..settings import CACHE_DIRECTORY_NAME, DEFAULT_EXCLUDE_PATTERNS, settings

log = get_logger(__name__)

LANGUAGE_BY_SUFFIX = {
    ".verse": "verse",
    ".py": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".kt": "kotlin",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    ".swift": "swift",
    ".md": "markdown",
    ".sql": "sql",
}


def detect_language(path: Path) -> str:
    return LANGUAGE_BY_SUFFIX.get(path.suffix.lower(), path.suffix.lower().lstrip(".") or "text")


def _should_ignore(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def _normalize_extensions(extensions: Iterable[str]) -> set[str]:
    return {"." + ext.lower().lstrip(".") for ext in extensions if ext.strip()}


@dataclass
class WorkspaceScanner:
    """Walks a workspace and yields indexable source files."""

    root: Path
    extensions: Sequence[str]
    exclude_patterns: Sequence[str] = tuple(DEFAULT_EXCLUDE_PATTERNS)
    max_file_size: int = 1_048_576

    @classmethod
    def from_settings(cls, root: Optional[Path] = None) -> "WorkspaceScanner":
        return cls(
            root=root or settings.workspace_root,
            extensions=settings.file_extensions,
            exclude_patterns=settings.exclude_patterns,
            max_file_size=settings.max_file_size,
        )

    def _patterns(self) -> List[str]:
        return list(dict.fromkeys([*self.exclude_patterns, CACHE_DIRECTORY_NAME]))

    def iter_files(self) -> Iterator[Path]:
        """Yield eligible files in a stable, sorted order."""
        if not self.root.exists():
            raise FileNotFoundError(f"Workspace not found: {self.root}")
        patterns = self._patterns()
        suffixes = _normalize_extensions(self.extensions)

        for current, dirs, filenames in os.walk(self.root):
            dirs[:] = sorted(d for d in dirs if not _should_ignore(d, patterns))
            current_path = Path(current)
            for filename in sorted(filenames):
                if _should_ignore(filename, patterns):
                    continue
                candidate = current_path / filename
                if candidate.suffix.lower() not in suffixes:
                    continue
                try:
                    size = candidate.stat().st_size
                except OSError as exc:
                    log.warning("file_stat_failed", path=str(candidate), error=str(exc))
                    continue
                if size > self.max_file_size:
                    log.info("file_skipped_too_large", path=str(candidate), size=size)
                    continue
                yield candidate

    def collect(self) -> List[Path]:
        return list(self.iter_files())

    def detect_languages(self) -> List[str]:
        return sorted({detect_language(path) for path in self.iter_files()})
