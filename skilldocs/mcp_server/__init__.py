"""
MCP Server Implementation
========================

Model Context Protocol server exposing the skill corpus to AI assistants.

Tools provided:
- lint_skill_document: Lint skill document content
- lint_skill_corpus: Lint the configured corpus (or a directory inside it)
- list_skills: List catalogued skills
- get_skill: Fetch a skill document by name

Resources provided:
- skill://<name>: Markdown body of each catalogued skill
- skilldocs://schemas/front-matter: Front-matter schema information
- skilldocs://status/health: Catalog health
"""
