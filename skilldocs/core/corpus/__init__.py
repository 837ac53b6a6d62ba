"""
Corpus Module
=============

Loading and linting of whole skill-document corpora.

Components:
- loader: File discovery and async reading
- linter: Per-file and corpus-wide lint orchestration
- catalog: Name-indexed catalog of valid skills
"""
