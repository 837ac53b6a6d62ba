"""
Data Models
===========

Pydantic data models for parsed documents, lint results and request/response validation.

Models:
- schemas: Skill documents, lint issues, corpus reports and API/MCP schemas
"""
