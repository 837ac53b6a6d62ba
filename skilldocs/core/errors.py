"""
Exceptions
==========

Exceptions raised by corpus and catalog operations. Lint findings are never
raised; they are reported as `LintIssue` data.
"""


class SkillDocsError(Exception):
    """Base exception for skilldocs failures."""

    pass


class CorpusNotFoundError(SkillDocsError):
    """Raised when a corpus path does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Corpus path not found: {path}")


class SkillNotFoundError(SkillDocsError):
    """Raised when a skill name is not present in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Skill not found: {name}")
