"""
HTTP API
========

FastAPI application serving lint results and catalogued skill documents.
"""
