"""
Skill Catalog
=============

Name-indexed view of a linted corpus, used to serve skill documents as
context over MCP and HTTP. Only documents with a name and no lint errors of
their own are catalogued.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from skilldocs.config.logging import get_logger
from skilldocs.config.settings import Settings, get_settings
from skilldocs.core.corpus.linter import CorpusLinter
from skilldocs.core.errors import SkillNotFoundError
from skilldocs.models.schemas import (
    CorpusReport,
    Severity,
    SkillDetail,
    SkillDocument,
    SkillSummary,
)

logger = get_logger(__name__)


class SkillCatalog:
    """Loads a corpus and indexes its valid skills by name."""

    def __init__(
        self, root: Optional[Union[str, Path]] = None, settings: Optional[Settings] = None
    ) -> None:
        self.settings = settings or get_settings()
        self.root = Path(root) if root is not None else self.settings.skills_root
        self.logger: Any = logger.bind(component="catalog")  # structlog.BoundLoggerBase
        self._skills: Dict[str, SkillDocument] = {}
        self._report: Optional[CorpusReport] = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._report is not None

    @property
    def report(self) -> Optional[CorpusReport]:
        """Lint report from the last load."""
        return self._report

    async def load(self) -> CorpusReport:
        """
        Lint the corpus and rebuild the index.

        Returns:
            CorpusReport of the load

        Raises:
            CorpusNotFoundError: If the corpus root does not exist
        """
        async with self._lock:
            report = await CorpusLinter(self.settings).lint_corpus(self.root)

            failing = {
                (issue.source, issue.segment)
                for issue in report.issues
                if issue.severity == Severity.ERROR
            }

            skills: Dict[str, SkillDocument] = {}
            for document in report.documents:
                if document.name is None or (document.source, document.segment) in failing:
                    continue
                skills.setdefault(document.name.casefold(), document)

            self._skills = skills
            self._report = report

            self.logger.info(
                "Skill catalog loaded",
                root=str(self.root),
                skills=len(skills),
                errors=report.error_count,
            )
            return report

    async def reload(self) -> CorpusReport:
        """Reload the catalog from disk."""
        return await self.load()

    async def ensure_loaded(self) -> None:
        if not self.loaded:
            await self.load()

    async def list_skills(self) -> List[SkillSummary]:
        """List catalogued skills sorted by name."""
        await self.ensure_loaded()
        return [
            SkillSummary.from_document(doc)
            for doc in sorted(self._skills.values(), key=lambda d: d.name or "")
        ]

    async def get_document(self, name: str) -> SkillDocument:
        """
        Look up a skill document by name (case-insensitive).

        Raises:
            SkillNotFoundError: If no catalogued skill has that name
        """
        await self.ensure_loaded()
        document = self._skills.get(name.strip().casefold())
        if document is None:
            raise SkillNotFoundError(name)
        return document

    async def get_skill(self, name: str) -> SkillDetail:
        """Catalog entry including the Markdown body."""
        document = await self.get_document(name)
        summary = SkillSummary.from_document(document)
        return SkillDetail(**summary.model_dump(), body=document.body)

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().casefold() in self._skills


# Global catalog instance - will be initialized when needed
_global_catalog: Optional[SkillCatalog] = None


def get_skill_catalog(root: Optional[Union[str, Path]] = None) -> SkillCatalog:
    """Get or create the global skill catalog."""
    global _global_catalog
    if _global_catalog is None or (root is not None and Path(root) != _global_catalog.root):
        _global_catalog = SkillCatalog(root)
    return _global_catalog


def reset_skill_catalog() -> None:
    """Drop the global catalog (used by tests and settings reloads)."""
    global _global_catalog
    _global_catalog = None
