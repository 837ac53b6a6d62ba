"""
MCP Server Implementation
========================

Model Context Protocol server serving skill documents as assistant context.
Implements the lint_skill_document, lint_skill_corpus, list_skills and
get_skill tools plus one resource per catalogued skill.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone
from urllib.parse import quote, unquote

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.types import (
    Resource,
    Tool,
    TextContent,
    LoggingLevel,
)

from skilldocs.config.settings import Settings, get_settings
from skilldocs.config.logging import get_logger, setup_logging
from skilldocs.core.corpus.catalog import SkillCatalog
from skilldocs.core.corpus.linter import CorpusLinter, check_duplicate_names
from skilldocs.core.errors import SkillDocsError
from skilldocs.core.frontmatter.parser import get_front_matter_schema_info, get_lint_suggestions
from skilldocs.core.reporting import report_to_dict
from skilldocs.models.schemas import LintResponse

logger = get_logger(__name__)

SERVER_NAME = "skilldocs-mcp"
SKILL_URI_SCHEME = "skill://"
SCHEMA_URI = "skilldocs://schemas/front-matter"
HEALTH_URI = "skilldocs://status/health"


def _error_payload(error_msg: str) -> List[TextContent]:
    return [
        TextContent(
            type="text",
            text=json.dumps(
                {
                    "success": False,
                    "error": error_msg,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
                indent=2,
            ),
        )
    ]


class SkillDocsMCPServer:
    """MCP Server exposing a skill-document corpus."""

    def __init__(
        self, root: Optional[Union[str, Path]] = None, settings: Optional[Settings] = None
    ) -> None:
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="mcp_server")  # structlog.BoundLoggerBase
        self.catalog = SkillCatalog(root, self.settings)
        self.server = Server(SERVER_NAME)
        self._setup_tools()
        self._setup_resources()
        self._setup_handlers()

    def _setup_tools(self) -> None:
        """Setup MCP tools."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            """List available MCP tools."""
            return [
                Tool(
                    name="lint_skill_document",
                    description="Lint skill document content (YAML front-matter plus Markdown)",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "content": {
                                "type": "string",
                                "description": "Document content; may hold several documents "
                                "joined by the document separator",
                            },
                            "source": {
                                "type": "string",
                                "description": "Label used in issue locations",
                                "default": "<mcp>",
                            },
                        },
                        "required": ["content"],
                    },
                ),
                Tool(
                    name="lint_skill_corpus",
                    description="Lint every skill document in the configured corpus",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "path": {
                                "type": "string",
                                "description": "Directory or file inside the corpus root",
                            },
                            "include_documents": {
                                "type": "boolean",
                                "description": "Include a per-document listing",
                                "default": False,
                            },
                        },
                    },
                ),
                Tool(
                    name="list_skills",
                    description="List the skills available as context",
                    inputSchema={"type": "object", "properties": {}},
                ),
                Tool(
                    name="get_skill",
                    description="Fetch a skill document by name",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "name": {
                                "type": "string",
                                "description": "Skill name from its front-matter",
                            }
                        },
                        "required": ["name"],
                    },
                ),
            ]

        # Store reference to handler for public API
        self._list_tools_handler = handle_list_tools

        @self.server.call_tool()
        async def handle_call_tool(  # type: ignore[misc]
            name: str, arguments: Dict[str, Any]
        ) -> List[TextContent]:
            """Handle tool execution."""
            return await self.call_tool(name, arguments)

    def _setup_resources(self) -> None:
        """Setup MCP resources."""

        @self.server.list_resources()
        async def handle_list_resources() -> List[Resource]:  # type: ignore[misc]
            """List available resources."""
            return await self.list_resources()

        @self.server.read_resource()  # type: ignore[arg-type]
        async def handle_read_resource(uri: Any) -> str:  # type: ignore[misc]
            """Read resource content."""
            return await self.read_resource(str(uri))

    def _setup_handlers(self) -> None:
        """Setup additional MCP handlers."""

        @self.server.set_logging_level()
        async def handle_set_logging_level(level: LoggingLevel) -> None:  # type: ignore[misc]
            """Handle logging level changes."""
            self.logger.info("Logging level changed", level=level)

    # Public API methods
    async def get_tools(self) -> List[Tool]:
        """Get list of available MCP tools."""
        return await self._list_tools_handler()

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> List[TextContent]:
        """Call a specific MCP tool; failures are returned as error payloads."""
        try:
            self.logger.info("Tool called", tool=name)

            if name == "lint_skill_document":
                return await self._handle_lint_skill_document(arguments)
            elif name == "lint_skill_corpus":
                return await self._handle_lint_skill_corpus(arguments)
            elif name == "list_skills":
                return await self._handle_list_skills(arguments)
            elif name == "get_skill":
                return await self._handle_get_skill(arguments)
            else:
                error_msg = f"Unknown tool: {name}"
                self.logger.error("Tool not found", tool=name, error=error_msg)
                return _error_payload(error_msg)

        except (SkillDocsError, ValueError) as e:
            error_msg = f"Tool execution failed: {e}"
            self.logger.error("Tool execution error", tool=name, error=error_msg)
            return _error_payload(error_msg)

    async def list_resources(self) -> List[Resource]:
        """Static resources plus one resource per catalogued skill."""
        resources = [
            Resource(
                uri=SCHEMA_URI,  # type: ignore[arg-type]
                name="Skill Front-Matter Schema",
                description="Required keys, typed optional keys and lint codes",
                mimeType="application/json",
            ),
            Resource(
                uri=HEALTH_URI,  # type: ignore[arg-type]
                name="Skill Catalog Health",
                description="Catalog size and lint status of the corpus",
                mimeType="application/json",
            ),
        ]

        try:
            skills = await self.catalog.list_skills()
        except SkillDocsError as e:
            self.logger.error("Failed to load skill catalog", error=str(e))
            return resources

        for skill in skills:
            resources.append(
                Resource(
                    uri=f"{SKILL_URI_SCHEME}{quote(skill.name)}",  # type: ignore[arg-type]
                    name=skill.name,
                    description=skill.description,
                    mimeType="text/markdown",
                )
            )
        return resources

    async def read_resource(self, uri: str) -> str:
        """
        Read resource content.

        Raises:
            ValueError: If the URI is unknown
            SkillNotFoundError: If a skill:// URI names a missing skill
        """
        if uri == SCHEMA_URI:
            return json.dumps(get_front_matter_schema_info(self.settings), indent=2, default=str)
        elif uri == HEALTH_URI:
            return await self._get_health_status()
        elif uri.startswith(SKILL_URI_SCHEME):
            name = unquote(uri[len(SKILL_URI_SCHEME) :]).rstrip("/")
            document = await self.catalog.get_document(name)
            return document.body
        else:
            raise ValueError(f"Unknown resource URI: {uri}")

    async def _handle_lint_skill_document(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Handle lint_skill_document tool execution."""
        content = arguments.get("content")
        if content is None:
            raise ValueError("content is required")

        source = arguments.get("source") or "<mcp>"
        report = await CorpusLinter(self.settings).lint_content(content, source)
        check_duplicate_names([report])

        response = LintResponse(
            valid=report.valid,
            segments=report.segments,
            issues=report.issues,
            suggestions=get_lint_suggestions(report.issues),
        )
        return [TextContent(type="text", text=json.dumps(response.model_dump(mode="json"), indent=2))]

    async def _handle_lint_skill_corpus(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Handle lint_skill_corpus tool execution."""
        target = self._resolve_corpus_path(arguments.get("path"))
        report = await CorpusLinter(self.settings).lint_corpus(target)

        data = report_to_dict(report, include_documents=bool(arguments.get("include_documents")))
        data["success"] = True
        data["suggestions"] = get_lint_suggestions(report.issues)
        return [TextContent(type="text", text=json.dumps(data, indent=2))]

    async def _handle_list_skills(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Handle list_skills tool execution."""
        skills = await self.catalog.list_skills()
        response = {
            "success": True,
            "count": len(skills),
            "skills": [
                {"name": s.name, "description": s.description, "source": s.label} for s in skills
            ],
        }
        return [TextContent(type="text", text=json.dumps(response, indent=2))]

    async def _handle_get_skill(self, arguments: Dict[str, Any]) -> List[TextContent]:
        """Handle get_skill tool execution."""
        name = arguments.get("name")
        if not name:
            raise ValueError("name is required")

        skill = await self.catalog.get_skill(name)
        response = {"success": True, **skill.model_dump(mode="json")}
        return [TextContent(type="text", text=json.dumps(response, indent=2, default=str))]

    def _resolve_corpus_path(self, path: Optional[str]) -> Path:
        """Resolve a tool-supplied path, refusing anything outside the corpus root."""
        root = self.catalog.root.resolve()
        if not path:
            return root

        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = root / candidate
        candidate = candidate.resolve()

        if candidate != root and root not in candidate.parents:
            raise ValueError(f"Path is outside the corpus root: {path}")
        return candidate

    async def _get_health_status(self) -> str:
        """Get catalog health status."""
        status: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": self.settings.app_version,
            "skills_root": str(self.catalog.root),
        }
        try:
            await self.catalog.ensure_loaded()
        except SkillDocsError as e:
            status.update({"status": "unhealthy", "error": str(e)})
            return json.dumps(status, indent=2)

        report = self.catalog.report
        errors = report.error_count if report else 0
        status.update(
            {
                "status": "healthy" if errors == 0 else "degraded",
                "skills_loaded": len(self.catalog),
                "catalog_errors": errors,
            }
        )
        return json.dumps(status, indent=2)

    async def run(self, transport_type: str = "stdio", host: str = "127.0.0.1", port: int = 3001) -> None:
        """Run the MCP server."""
        try:
            if transport_type == "stdio":
                # Run with stdio transport
                from mcp.server.stdio import stdio_server

                async with stdio_server() as (read_stream, write_stream):
                    self.logger.info("MCP server starting with stdio transport")
                    await self.server.run(
                        read_stream,
                        write_stream,
                        InitializationOptions(
                            server_name=SERVER_NAME,
                            server_version=self.settings.app_version,
                            capabilities=self.server.get_capabilities(
                                notification_options=NotificationOptions(),
                                experimental_capabilities={},
                            ),
                        ),
                    )
            elif transport_type == "http":
                # HTTP health check server for container deployment
                from aiohttp import web

                async def health_check(request: web.Request) -> web.Response:
                    return web.json_response(json.loads(await self._get_health_status()))

                app = web.Application()
                app.router.add_get("/health", health_check)
                app.router.add_get("/", health_check)

                self.logger.info("MCP server starting with HTTP health check", host=host, port=port)

                runner = web.AppRunner(app)
                await runner.setup()
                site = web.TCPSite(runner, host, port)
                await site.start()

                try:
                    while True:
                        await asyncio.sleep(60)
                except asyncio.CancelledError:
                    self.logger.info("MCP server shutdown requested")
                    await runner.cleanup()
                    raise
            else:
                raise ValueError(f"Unsupported transport type: {transport_type}")

        except Exception as e:
            self.logger.error("MCP server error", error=str(e))
            raise


async def main(
    root: Optional[Union[str, Path]] = None, transport_type: str = "stdio"
) -> None:
    """Main entry point for the MCP server."""
    settings = get_settings()
    setup_logging(settings)
    server = SkillDocsMCPServer(root, settings)
    if transport_type == "http":
        await server.run(transport_type="http", host=settings.mcp_host, port=settings.mcp_port)
    else:
        await server.run(transport_type="stdio")


if __name__ == "__main__":
    asyncio.run(main())
