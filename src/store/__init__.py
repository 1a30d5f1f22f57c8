"""Content-addressed storage layer.

This package persists tensor blobs, commit records, and references.
It powers the repository coordinator and history traversal.
"""
