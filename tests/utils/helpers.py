"""
Test Helpers
============

Helper functions for building skill corpora on disk.
"""

from pathlib import Path


def write_document(root: Path, relative: str, content: str) -> Path:
    """Write a document below root, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
