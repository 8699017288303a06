"""
HTTP interface for indexing and searching a workspace.
"""
