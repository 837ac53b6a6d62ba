"""
Unit Tests for Skill Catalog
============================

Tests for loading, indexing and looking up skills.
"""

import pytest

from skilldocs.core.corpus.catalog import SkillCatalog, get_skill_catalog, reset_skill_catalog
from skilldocs.core.errors import CorpusNotFoundError, SkillNotFoundError
from skilldocs.models.schemas import SkillDetail

from tests.data.sample_skill_documents import DUPLICATE_NAMES, NO_FRONT_MATTER, VALID_SKILL
from tests.utils.helpers import write_document


class TestSkillCatalog:
    """Test catalog loading and lookups."""

    async def test_lazy_load(self, catalog):
        assert catalog.loaded is False
        assert catalog.report is None

        skills = await catalog.list_skills()

        assert catalog.loaded is True
        assert len(catalog) == 4
        assert [s.name for s in skills] == [
            "api-design",
            "docker-basics",
            "kubernetes-basics",
            "testing-strategy",
        ]

    async def test_summary_fields(self, catalog, skill_corpus):
        skills = {s.name: s for s in await catalog.list_skills()}

        kubernetes = skills["kubernetes-basics"]
        assert kubernetes.description == "Deploying services to a cluster"
        assert kubernetes.source == str(skill_corpus / "bundle.md")
        assert kubernetes.label == f"{skill_corpus / 'bundle.md'}#1"
        assert kubernetes.metadata["retry_config"]["max_retries"] == 3

    async def test_get_skill_is_case_insensitive(self, catalog):
        skill = await catalog.get_skill("  API-Design ")

        assert isinstance(skill, SkillDetail)
        assert skill.name == "api-design"
        assert "# API Design" in skill.body

    async def test_get_missing_skill(self, catalog):
        with pytest.raises(SkillNotFoundError) as exc_info:
            await catalog.get_document("unknown")

        assert str(exc_info.value) == "Skill not found: unknown"
        assert exc_info.value.name == "unknown"

    async def test_contains(self, catalog):
        await catalog.load()

        assert "docker-basics" in catalog
        assert "DOCKER-BASICS" in catalog
        assert "unknown" not in catalog
        assert 42 not in catalog

    async def test_documents_with_errors_are_skipped(self, broken_corpus, test_settings):
        catalog = SkillCatalog(broken_corpus, test_settings)

        report = await catalog.load()

        assert report.error_count == 2
        # plain.md only has a warning and is kept
        assert sorted(s.name for s in await catalog.list_skills()) == ["api-design", "plain"]
        assert "second" not in catalog

    async def test_unnamed_documents_are_skipped(self, tmp_path, test_settings):
        write_document(tmp_path, "notes.md", NO_FRONT_MATTER)
        write_document(tmp_path, "api.md", VALID_SKILL)

        catalog = SkillCatalog(tmp_path, test_settings)

        assert [s.name for s in await catalog.list_skills()] == ["api-design"]

    async def test_duplicate_keeps_first(self, tmp_path, test_settings):
        write_document(tmp_path, "dupes.md", DUPLICATE_NAMES)

        catalog = SkillCatalog(tmp_path, test_settings)
        skill = await catalog.get_skill("api-design")

        assert len(catalog) == 1
        assert skill.label.endswith("dupes.md#0")

    async def test_reload_picks_up_new_files(self, catalog, skill_corpus):
        await catalog.load()
        write_document(
            skill_corpus, "new.md", VALID_SKILL.replace("api-design", "new-skill")
        )

        assert "new-skill" not in catalog
        await catalog.reload()
        assert "new-skill" in catalog
        assert len(catalog) == 5

    async def test_missing_root(self, tmp_path, test_settings):
        catalog = SkillCatalog(tmp_path / "missing", test_settings)

        with pytest.raises(CorpusNotFoundError):
            await catalog.list_skills()
        assert catalog.loaded is False

    def test_defaults_to_settings_root(self, test_settings, tmp_path):
        test_settings.skills_root = tmp_path

        assert SkillCatalog(settings=test_settings).root == tmp_path


class TestGlobalCatalog:
    """Test the global catalog accessor."""

    def test_singleton(self, skill_corpus):
        first = get_skill_catalog(skill_corpus)

        assert get_skill_catalog() is first
        assert get_skill_catalog(skill_corpus) is first

    def test_new_root_replaces_catalog(self, skill_corpus, tmp_path):
        first = get_skill_catalog(skill_corpus)
        second = get_skill_catalog(tmp_path)

        assert second is not first
        assert second.root == tmp_path

    def test_reset(self, skill_corpus):
        first = get_skill_catalog(skill_corpus)
        reset_skill_catalog()

        assert get_skill_catalog(skill_corpus) is not first
