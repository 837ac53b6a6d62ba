"""
Skill Document Toolkit
======================

Loading, linting and serving of Markdown "skill documents": files made of an
optional YAML front-matter block followed by Markdown prose, possibly
concatenated several to a file with a literal separator line.

This package provides:
- Front-matter parsing and schema validation
- Splitting of concatenated multi-document files
- Corpus-wide linting with text/JSON reports
- A skill catalog served over MCP and a FastAPI REST API
- The `skilldocs` command line interface
"""

__version__ = "1.0.0"
__author__ = "skilldocs maintainers"
