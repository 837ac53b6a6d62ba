"""
Front-Matter Processing Module
=============================

Skill document parsing and validation.

Components:
- splitter: Splitting of concatenated files on the document separator
- parser: Front-matter extraction, YAML loading and lint rules
"""
