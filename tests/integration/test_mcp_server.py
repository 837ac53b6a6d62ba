"""
Integration Tests for the MCP Server
====================================

Tests for the skill document MCP tools and resources against a corpus on disk.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from skilldocs.core.errors import SkillNotFoundError
from skilldocs.mcp_server.server import (
    HEALTH_URI,
    SCHEMA_URI,
    SERVER_NAME,
    SkillDocsMCPServer,
)

from tests.data.sample_skill_documents import DUPLICATE_NAMES, MISSING_DESCRIPTION, VALID_SKILL


def _payload(result):
    """Decode the JSON body of a tool result."""
    assert len(result) == 1
    assert result[0].type == "text"
    return json.loads(result[0].text)


class TestMCPServerBasics:
    """Test basic MCP server functionality."""

    @pytest.fixture
    def mcp_server(self, skill_corpus, test_settings):
        """Create MCP server instance for testing."""
        return SkillDocsMCPServer(skill_corpus, test_settings)

    def test_server_initialization(self, mcp_server, skill_corpus):
        assert mcp_server.server.name == SERVER_NAME
        assert mcp_server.catalog.root == skill_corpus

    async def test_tools_are_listed(self, mcp_server):
        tools = await mcp_server.get_tools()

        assert {tool.name for tool in tools} == {
            "lint_skill_document",
            "lint_skill_corpus",
            "list_skills",
            "get_skill",
        }
        lint_tool = next(t for t in tools if t.name == "lint_skill_document")
        assert lint_tool.inputSchema["required"] == ["content"]

    async def test_unknown_tool(self, mcp_server):
        data = _payload(await mcp_server.call_tool("delete_skill", {}))

        assert data["success"] is False
        assert "Unknown tool" in data["error"]


class TestMCPTools:
    """Test MCP tool execution."""

    @pytest.fixture
    def mcp_server(self, skill_corpus, test_settings):
        return SkillDocsMCPServer(skill_corpus, test_settings)

    async def test_lint_valid_document(self, mcp_server):
        data = _payload(
            await mcp_server.call_tool("lint_skill_document", {"content": VALID_SKILL})
        )

        assert data["valid"] is True
        assert data["segments"] == 1
        assert data["issues"] == []

    async def test_lint_invalid_document(self, mcp_server):
        data = _payload(
            await mcp_server.call_tool(
                "lint_skill_document", {"content": MISSING_DESCRIPTION, "source": "second.md"}
            )
        )

        assert data["valid"] is False
        assert data["issues"][0]["code"] == "frontmatter-missing-key"
        assert data["issues"][0]["source"] == "second.md"
        assert data["suggestions"]

    async def test_lint_flags_duplicates_within_content(self, mcp_server):
        data = _payload(
            await mcp_server.call_tool("lint_skill_document", {"content": DUPLICATE_NAMES})
        )

        assert "duplicate-name" in {issue["code"] for issue in data["issues"]}

    async def test_lint_requires_content(self, mcp_server):
        data = _payload(await mcp_server.call_tool("lint_skill_document", {}))

        assert data["success"] is False
        assert "content is required" in data["error"]

    async def test_lint_corpus(self, mcp_server):
        data = _payload(await mcp_server.call_tool("lint_skill_corpus", {}))

        assert data["success"] is True
        assert data["summary"]["files"] == 3
        assert data["summary"]["valid"] is True

    async def test_lint_corpus_subdirectory(self, mcp_server):
        data = _payload(
            await mcp_server.call_tool(
                "lint_skill_corpus", {"path": "testing", "include_documents": True}
            )
        )

        assert data["summary"]["files"] == 1
        assert [d["name"] for d in data["documents"]] == ["testing-strategy"]

    async def test_lint_corpus_rejects_outside_paths(self, mcp_server):
        data = _payload(await mcp_server.call_tool("lint_skill_corpus", {"path": "../.."}))

        assert data["success"] is False
        assert "outside the corpus root" in data["error"]

    async def test_list_skills(self, mcp_server):
        data = _payload(await mcp_server.call_tool("list_skills", {}))

        assert data["success"] is True
        assert data["count"] == 4
        assert data["skills"][0]["name"] == "api-design"

    async def test_get_skill(self, mcp_server):
        data = _payload(await mcp_server.call_tool("get_skill", {"name": "docker-basics"}))

        assert data["success"] is True
        assert data["description"] == "Building small container images"
        assert "# Docker Basics" in data["body"]

    async def test_get_missing_skill(self, mcp_server):
        data = _payload(await mcp_server.call_tool("get_skill", {"name": "unknown"}))

        assert data["success"] is False
        assert "Skill not found: unknown" in data["error"]


class TestMCPResources:
    """Test MCP resources."""

    @pytest.fixture
    def mcp_server(self, skill_corpus, test_settings):
        return SkillDocsMCPServer(skill_corpus, test_settings)

    async def test_list_resources(self, mcp_server):
        resources = await mcp_server.list_resources()

        uris = {str(resource.uri).rstrip("/") for resource in resources}
        assert SCHEMA_URI in uris
        assert HEALTH_URI in uris
        assert "skill://api-design" in uris
        skill = next(r for r in resources if r.name == "kubernetes-basics")
        assert skill.mimeType == "text/markdown"

    async def test_list_resources_without_corpus(self, tmp_path, test_settings):
        server = SkillDocsMCPServer(tmp_path / "missing", test_settings)

        resources = await server.list_resources()

        assert len(resources) == 2

    async def test_read_skill_resource(self, mcp_server):
        body = await mcp_server.read_resource("skill://testing-strategy")

        assert body.startswith("\n# Testing Strategy")

    async def test_read_missing_skill_resource(self, mcp_server):
        with pytest.raises(SkillNotFoundError):
            await mcp_server.read_resource("skill://unknown")

    async def test_read_schema_resource(self, mcp_server):
        data = json.loads(await mcp_server.read_resource(SCHEMA_URI))

        assert data["required_keys"] == ["name", "description"]

    async def test_read_health_resource(self, mcp_server):
        data = json.loads(await mcp_server.read_resource(HEALTH_URI))

        assert data["status"] == "healthy"
        assert data["skills_loaded"] == 4

    async def test_health_of_missing_corpus(self, tmp_path, test_settings):
        server = SkillDocsMCPServer(tmp_path / "missing", test_settings)

        data = json.loads(await server.read_resource(HEALTH_URI))

        assert data["status"] == "unhealthy"

    async def test_unknown_resource(self, mcp_server):
        with pytest.raises(ValueError):
            await mcp_server.read_resource("skilldocs://nothing")


class TestMCPServerEntryPoint:
    """Test running the server module over stdio."""

    def test_stdio_logs_stay_off_stdout(self, skill_corpus):
        repo_root = Path(__file__).resolve().parents[2]
        env = {
            **os.environ,
            "PYTHONPATH": os.pathsep.join(filter(None, [str(repo_root), os.environ.get("PYTHONPATH")])),
            "SKILLDOCS_ENVIRONMENT": "testing",
            "SKILLDOCS_LOG_LEVEL": "INFO",
            "SKILLDOCS_SKILLS_ROOT": str(skill_corpus),
        }

        process = subprocess.Popen(
            [sys.executable, "-m", "skilldocs.mcp_server.server"],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
            cwd=repo_root,
        )
        try:
            # Closing stdin ends the stdio session
            stdout, stderr = process.communicate(input="", timeout=30)
        except subprocess.TimeoutExpired:
            process.kill()
            stdout, stderr = process.communicate()

        assert stdout == ""
        assert "MCP server starting with stdio transport" in stderr
