"""
Workspace ingestion.

Discovers the source files of a workspace before they are chunked and
embedded.
"""
from .scanner import WorkspaceScanner, detect_language

__all__ = ["WorkspaceScanner", "detect_language"]
