"""
Command Line Interface
======================

`skilldocs` console script: lint a corpus, list its skills, split
concatenated files and start the MCP or HTTP servers.

Exit codes for `lint`: 0 clean, 1 lint failures, 2 usage errors or missing
paths.
"""

import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
from pydantic import ValidationError

from skilldocs import __version__
from skilldocs.config.logging import get_logger, setup_logging
from skilldocs.config.settings import Settings, get_settings, reload_settings
from skilldocs.core.corpus.catalog import SkillCatalog
from skilldocs.core.corpus.linter import CorpusLinter
from skilldocs.core.corpus.loader import discover_files, read_document
from skilldocs.core.errors import SkillDocsError
from skilldocs.core.frontmatter.parser import SkillDocumentParser
from skilldocs.core.frontmatter.splitter import split_documents
from skilldocs.core.reporting import render_json, render_skill_table, render_text

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_LINT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skilldocs", description="Lint and serve Markdown skill documents"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override the configured log level")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--separator", help="Line separating documents concatenated in one file"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    lint = subparsers.add_parser("lint", parents=[common], help="Lint skill documents")
    lint.add_argument("paths", nargs="+", metavar="PATH", help="Files or corpus directories")
    lint.add_argument("--format", choices=["text", "json"], default="text", help="Report format")
    lint.add_argument(
        "--fail-on-warnings", action="store_true", help="Exit 1 when warnings are reported"
    )
    lint.add_argument(
        "--require", nargs="+", metavar="KEY", help="Front-matter keys that must be non-empty"
    )
    lint.add_argument("--quiet", "-q", action="store_true", help="Only report errors")

    list_cmd = subparsers.add_parser(
        "list", parents=[common], help="List valid skills in a corpus"
    )
    list_cmd.add_argument("path", metavar="PATH", help="Corpus directory or file")
    list_cmd.add_argument("--format", choices=["text", "json"], default="text")

    split = subparsers.add_parser(
        "split", parents=[common], help="Split a concatenated file into documents"
    )
    split.add_argument("file", metavar="FILE", help="Concatenated skill file")
    split.add_argument(
        "--output-dir",
        help="Directory for the split documents (default: FILE without suffix, or FILE.d)",
    )

    serve_mcp = subparsers.add_parser("serve-mcp", help="Run the MCP server")
    serve_mcp.add_argument("--root", help="Corpus root (default: configured skills_root)")
    serve_mcp.add_argument("--transport", choices=["stdio", "http"], default="stdio")

    serve_api = subparsers.add_parser("serve-api", help="Run the HTTP API")
    serve_api.add_argument("--root", help="Corpus root (default: configured skills_root)")
    serve_api.add_argument("--host", help="Bind address")
    serve_api.add_argument("--port", type=int, help="Bind port")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides: Dict[str, Any] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if getattr(args, "separator", None):
        overrides["document_separator"] = args.separator
    if getattr(args, "require", None):
        overrides["required_keys"] = args.require
    if getattr(args, "fail_on_warnings", False):
        overrides["fail_on_warnings"] = True
    return reload_settings(**overrides) if overrides else get_settings()


async def run_lint(args: argparse.Namespace, settings: Settings) -> int:
    paths: List[Path] = []
    for raw in args.paths:
        for path in discover_files(raw, settings.include_patterns, settings.exclude_patterns):
            if path not in paths:
                paths.append(path)

    report = await CorpusLinter(settings).lint_paths(paths, ", ".join(args.paths))

    if args.format == "json":
        print(render_json(report))
    else:
        print(render_text(report, show_warnings=not args.quiet))

    return EXIT_OK if report.passed(settings.fail_on_warnings) else EXIT_LINT_FAILED


async def run_list(args: argparse.Namespace, settings: Settings) -> int:
    catalog = SkillCatalog(args.path, settings)
    skills = await catalog.list_skills()

    if args.format == "json":
        print(json.dumps([skill.model_dump(mode="json") for skill in skills], indent=2))
    else:
        print(render_skill_table(skills))
    return EXIT_OK


def _segment_filename(name: Optional[str], index: int, used: set) -> str:
    stem = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") if name else ""
    stem = stem or f"segment-{index}"
    candidate, n = stem, 2
    while candidate in used:
        candidate = f"{stem}-{n}"
        n += 1
    used.add(candidate)
    return f"{candidate}.md"


async def run_split(args: argparse.Namespace, settings: Settings) -> int:
    source = Path(args.file)
    if not source.is_file():
        print(f"skilldocs: file not found: {source}", file=sys.stderr)
        return EXIT_USAGE

    content = await read_document(source)
    if args.output_dir:
        output_dir = Path(args.output_dir)
    elif source.suffix:
        output_dir = source.with_suffix("")
    else:
        output_dir = source.parent / f"{source.name}.d"
    if output_dir.exists() and not output_dir.is_dir():
        print(f"skilldocs: output path is not a directory: {output_dir}", file=sys.stderr)
        return EXIT_USAGE
    output_dir.mkdir(parents=True, exist_ok=True)

    parser = SkillDocumentParser(settings)
    used: set = set()
    written = 0
    for segment in split_documents(content, settings.document_separator):
        if segment.is_blank:
            continue
        result = await parser.parse(segment.text, source=str(source), segment=segment.index)
        name = result.document.name if result.document else None
        target = output_dir / _segment_filename(name, segment.index, used)

        async with aiofiles.open(target, "w", encoding="utf-8") as f:
            await f.write(segment.text.strip("\n") + "\n")
        print(target)
        written += 1

    logger.info("Split document", source=str(source), documents=written)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as e:
        print(f"skilldocs: invalid option: {e}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(settings)

    try:
        if args.command == "lint":
            return asyncio.run(run_lint(args, settings))
        elif args.command == "list":
            return asyncio.run(run_list(args, settings))
        elif args.command == "split":
            return asyncio.run(run_split(args, settings))
        elif args.command == "serve-mcp":
            from skilldocs.mcp_server.server import SkillDocsMCPServer

            server = SkillDocsMCPServer(args.root, settings)
            asyncio.run(
                server.run(
                    transport_type=args.transport, host=settings.mcp_host, port=settings.mcp_port
                )
            )
            return EXIT_OK
        elif args.command == "serve-api":
            from skilldocs.api.main import run_development_server

            run_development_server(args.root, args.host, args.port, settings)
            return EXIT_OK
    except SkillDocsError as e:
        print(f"skilldocs: {e}", file=sys.stderr)
        return EXIT_USAGE
    except KeyboardInterrupt:
        return EXIT_OK
    except Exception as e:
        logger.error("Command failed", command=args.command, error=str(e), exc_info=True)
        raise

    parser.error(f"unknown command: {args.command}")
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
