"""
Corpus Linter
=============

Lints in-memory content, single files and whole corpora. Concatenated files
are split on the document separator and every segment is parsed as its own
skill document; corpus-wide rules (duplicate names) run last.
"""

import asyncio
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from skilldocs.config.logging import get_logger
from skilldocs.config.settings import Settings, get_settings
from skilldocs.core.corpus.loader import discover_files, read_document
from skilldocs.core.frontmatter.parser import SkillDocumentParser
from skilldocs.core.frontmatter.splitter import split_documents
from skilldocs.models.schemas import (
    CorpusReport,
    DocumentReport,
    LintCode,
    LintIssue,
    Severity,
)

logger = get_logger(__name__)


class CorpusLinter:
    """Runs every lint rule over content, files and corpora."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="linter")  # structlog.BoundLoggerBase
        self.parser = SkillDocumentParser(self.settings)

    async def lint_content(self, content: str, source: str = "<string>") -> DocumentReport:
        """
        Lint in-memory content that may hold several concatenated documents.

        Args:
            content: Raw file content
            source: Label used in issue locations

        Returns:
            DocumentReport for the content
        """
        if not content.strip():
            return DocumentReport(
                source=source,
                segments=0,
                issues=[
                    LintIssue(
                        code=LintCode.EMPTY_FILE,
                        severity=Severity.ERROR,
                        message="File is empty",
                        source=source,
                    )
                ],
            )

        segments = split_documents(content, self.settings.document_separator)
        concatenated = len(segments) > 1
        report = DocumentReport(source=source, segments=len(segments))

        for segment in segments:
            index = segment.index if concatenated else None

            if segment.is_blank:
                report.issues.append(
                    LintIssue(
                        code=LintCode.EMPTY_SEGMENT,
                        severity=Severity.ERROR,
                        message="Empty document between separators",
                        source=source,
                        line=segment.start_line,
                        segment=index,
                    )
                )
                continue

            result = await self.parser.parse(
                segment.text, source=source, segment=index, first_line=segment.start_line
            )
            if result.document is not None:
                report.documents.append(result.document)
            report.issues.extend(result.issues)

        self.logger.debug(
            "Linted content",
            source=source,
            segments=report.segments,
            errors=len(report.errors),
            warnings=len(report.warnings),
        )
        return report

    async def lint_file(self, path: Union[str, Path]) -> DocumentReport:
        """
        Lint a single file.

        Args:
            path: File to lint

        Returns:
            DocumentReport; unreadable files produce a read-error issue
        """
        source = str(path)
        try:
            content = await read_document(path)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning("Failed to read document", source=source, error=str(e))
            return DocumentReport(
                source=source,
                issues=[
                    LintIssue(
                        code=LintCode.READ_ERROR,
                        severity=Severity.ERROR,
                        message=f"Cannot read file: {e}",
                        source=source,
                    )
                ],
            )

        return await self.lint_content(content, source)

    async def lint_paths(self, paths: List[Path], root: str) -> CorpusReport:
        """
        Lint an explicit list of files concurrently.

        Args:
            paths: Files to lint
            root: Label recorded as the corpus root

        Returns:
            CorpusReport with reports in input order and corpus-wide issues applied
        """
        start_time = time.time()
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def _bounded(path: Path) -> DocumentReport:
            async with semaphore:
                return await self.lint_file(path)

        reports = await asyncio.gather(*(_bounded(path) for path in paths))

        report = CorpusReport(root=root, reports=list(reports))
        check_duplicate_names(report.reports)
        report.processing_time = time.time() - start_time

        self.logger.info(
            "Corpus linted",
            root=root,
            files=report.file_count,
            errors=report.error_count,
            warnings=report.warning_count,
        )
        return report

    async def lint_corpus(self, root: Union[str, Path]) -> CorpusReport:
        """
        Discover and lint every skill document under a corpus root.

        Args:
            root: Corpus directory or single file

        Returns:
            CorpusReport for the corpus

        Raises:
            CorpusNotFoundError: If root does not exist
        """
        paths = discover_files(
            root, self.settings.include_patterns, self.settings.exclude_patterns
        )
        return await self.lint_paths(paths, str(root))


def check_duplicate_names(reports: List[DocumentReport]) -> None:
    """
    Flag documents whose front-matter name was already used.

    Names are compared case-insensitively in file order; the first occurrence
    is kept clean and each later one gets a duplicate-name error.
    """
    first_seen: Dict[str, str] = {}

    for file_report in reports:
        for document in file_report.documents:
            name = document.name
            if name is None:
                continue
            key = name.casefold()
            if key not in first_seen:
                first_seen[key] = document.label
                continue

            line = document.front_matter.start_line if document.front_matter else None
            file_report.issues.append(
                LintIssue(
                    code=LintCode.DUPLICATE_NAME,
                    severity=Severity.ERROR,
                    message=f"Skill name '{name}' is already used by {first_seen[key]}",
                    source=document.source,
                    line=line,
                    segment=document.segment,
                )
            )


async def lint_content(
    content: str, source: str = "<string>", settings: Optional[Settings] = None
) -> DocumentReport:
    """Lint in-memory content using the configured rules."""
    return await CorpusLinter(settings).lint_content(content, source)


async def lint_file(path: Union[str, Path], settings: Optional[Settings] = None) -> DocumentReport:
    """Lint a single file using the configured rules."""
    return await CorpusLinter(settings).lint_file(path)


async def lint_corpus(
    root: Union[str, Path], settings: Optional[Settings] = None
) -> CorpusReport:
    """Lint every skill document under a corpus root."""
    return await CorpusLinter(settings).lint_corpus(root)
