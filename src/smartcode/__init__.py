"""
Smart code search: structural chunking, embedding cache and hybrid queries
for source workspaces.
"""

from .version import __version__

__all__ = ["__version__"]
