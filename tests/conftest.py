"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Provides test settings, temporary skill corpora and parser/linter instances.
"""

from pathlib import Path
from typing import Generator

import pytest
from pydantic_settings import SettingsConfigDict

from skilldocs.config import settings as settings_module
from skilldocs.config.logging import setup_logging
from skilldocs.config.settings import Settings
from skilldocs.core.corpus.catalog import SkillCatalog, reset_skill_catalog
from skilldocs.core.corpus.linter import CorpusLinter
from skilldocs.core.frontmatter.parser import SkillDocumentParser

from tests.data.sample_skill_documents import (
    CONCATENATED,
    MISSING_DESCRIPTION,
    NO_HEADING,
    TESTING_SKILL,
    VALID_SKILL,
)
from tests.utils.helpers import write_document


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    debug: bool = True
    log_level: str = "WARNING"
    max_concurrency: int = 4

    model_config = SettingsConfigDict(env_file=".env.test", env_prefix="SKILLDOCS_")


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Route structlog through stdlib logging on stderr for the whole session."""
    setup_logging(TestSettings())


@pytest.fixture
def test_settings() -> TestSettings:
    """Test settings fixture."""
    return TestSettings()


@pytest.fixture(autouse=True)
def override_settings(
    test_settings: TestSettings, monkeypatch: pytest.MonkeyPatch
) -> Generator[TestSettings, None, None]:
    """Install test settings as the global settings and drop cached catalogs."""
    monkeypatch.setattr(settings_module, "settings", test_settings)
    reset_skill_catalog()
    yield test_settings
    reset_skill_catalog()


@pytest.fixture
def skill_corpus(tmp_path: Path) -> Path:
    """
    Valid corpus with four skills in three files.

    node_modules and non-Markdown files must be ignored by discovery.
    """
    root = tmp_path / "skills"
    write_document(root, "api-design.md", VALID_SKILL)
    write_document(root, "bundle.md", CONCATENATED)
    write_document(root, "testing/SKILL.md", TESTING_SKILL)
    write_document(root, "node_modules/pkg/README.md", VALID_SKILL)
    write_document(root, "notes.txt", "not a skill document")
    return root


@pytest.fixture
def broken_corpus(tmp_path: Path) -> Path:
    """Corpus with one valid skill, one erroneous document and one warning."""
    root = tmp_path / "broken"
    write_document(root, "api-design.md", VALID_SKILL)
    write_document(root, "missing.md", MISSING_DESCRIPTION)
    write_document(root, "plain.md", NO_HEADING)
    write_document(root, "empty.md", "")
    return root


@pytest.fixture
def parser(test_settings: TestSettings) -> SkillDocumentParser:
    """Skill document parser using test settings."""
    return SkillDocumentParser(test_settings)


@pytest.fixture
def linter(test_settings: TestSettings) -> CorpusLinter:
    """Corpus linter using test settings."""
    return CorpusLinter(test_settings)


@pytest.fixture
def catalog(skill_corpus: Path, test_settings: TestSettings) -> SkillCatalog:
    """Skill catalog over the valid corpus."""
    return SkillCatalog(skill_corpus, test_settings)
