"""
Core Business Logic
==================

Document parsing, corpus loading and reporting.

Components:
- frontmatter: Front-matter parsing, validation and multi-document splitting
- corpus: File discovery, corpus linting and the skill catalog
- reporting: Text and JSON rendering of lint reports
"""
