"""
Skill Document Parser
=====================

Core parsing engine for skill documents: extracts the optional YAML
front-matter block, validates it with Cerberus schemas and runs the
structural checks on the Markdown body.
"""

from typing import Dict, List, Any, Optional, Tuple
from dataclasses import dataclass
import re
import time
import yaml  # type: ignore[import-untyped]
from cerberus import Validator  # type: ignore[import-untyped]

from skilldocs.config.logging import get_logger
from skilldocs.config.settings import Settings, get_settings
from skilldocs.core.frontmatter.splitter import iter_fenced_lines
from skilldocs.models.schemas import (
    FrontMatter,
    LintCode,
    LintIssue,
    ParseResult,
    Severity,
    SkillDocument,
)

logger = get_logger(__name__)

FRONT_MATTER_DELIMITER = "---"
FRONT_MATTER_TERMINATORS = ("---", "...")

NAME_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
HEADING_PATTERN = re.compile(r"^ {0,3}#{1,6}(?:\s|$)")
TOP_LEVEL_KEY_PATTERN = re.compile(r"""^(?:"([^"]+)"|'([^']+)'|([^\s#'"][^:]*?))\s*:(?:\s|$)""")


@dataclass
class FrontMatterSplit:
    """Front-matter block and body located in a document."""

    raw: Optional[str]
    start_line: int
    end_line: Optional[int]
    body: str
    body_start_line: int
    unterminated: bool = False

    @property
    def has_block(self) -> bool:
        return self.raw is not None


class IssueCollector:
    """Accumulates lint issues for one document."""

    def __init__(self, source: str = "<string>", segment: Optional[int] = None) -> None:
        self.source = source
        self.segment = segment
        self.issues: List[LintIssue] = []

    def add(
        self, code: LintCode, severity: Severity, message: str, line: Optional[int] = None
    ) -> None:
        self.issues.append(
            LintIssue(
                code=code,
                severity=severity,
                message=message,
                source=self.source,
                line=line,
                segment=self.segment,
            )
        )

    def error(self, code: LintCode, message: str, line: Optional[int] = None) -> None:
        self.add(code, Severity.ERROR, message, line)

    def warning(self, code: LintCode, message: str, line: Optional[int] = None) -> None:
        self.add(code, Severity.WARNING, message, line)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == Severity.ERROR for issue in self.issues)


def split_front_matter(text: str, first_line: int = 1) -> FrontMatterSplit:
    """
    Locate the front-matter block of a document.

    A block exists only when the first non-blank line is exactly `---`; it
    ends at the next `---` or `...` line. Blank lines before the opening
    delimiter are skipped, so a segment written with a blank line after its
    separator keeps its front-matter.

    Args:
        text: Document text
        first_line: Absolute line number of the first line of `text`

    Returns:
        FrontMatterSplit; `unterminated` is set when the closing delimiter is missing
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    lines = text.splitlines(keepends=True)
    skip = 0
    while skip < len(lines) and not lines[skip].strip():
        skip += 1

    if skip == len(lines) or lines[skip].rstrip() != FRONT_MATTER_DELIMITER:
        return FrontMatterSplit(
            raw=None, start_line=first_line, end_line=None, body=text, body_start_line=first_line
        )

    start_line = first_line + skip
    for i in range(skip + 1, len(lines)):
        if lines[i].rstrip() in FRONT_MATTER_TERMINATORS:
            return FrontMatterSplit(
                raw="".join(lines[skip + 1 : i]),
                start_line=start_line,
                end_line=first_line + i,
                body="".join(lines[i + 1 :]),
                body_start_line=first_line + i + 1,
            )

    return FrontMatterSplit(
        raw=None,
        start_line=start_line,
        end_line=None,
        body=text,
        body_start_line=first_line,
        unterminated=True,
    )


def load_front_matter_yaml(
    raw: str, start_line: int, collector: IssueCollector
) -> Optional[Dict[str, Any]]:
    """
    Load the YAML of a front-matter block.

    Args:
        raw: YAML text between the delimiters
        start_line: Absolute line of the opening delimiter
        collector: Issue sink

    Returns:
        Parsed mapping, or None when the block is not a valid YAML mapping
    """
    try:
        data = yaml.safe_load(raw)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        line = start_line + 1 + mark.line if mark is not None else start_line
        problem = e.problem or e.context or str(e)
        collector.error(
            LintCode.FRONTMATTER_INVALID_YAML, f"Invalid YAML in front-matter: {problem}", line
        )
        return None
    except yaml.YAMLError as e:
        collector.error(
            LintCode.FRONTMATTER_INVALID_YAML, f"Invalid YAML in front-matter: {e}", start_line
        )
        return None

    if data is None:
        return {}

    if not isinstance(data, dict):
        collector.error(
            LintCode.FRONTMATTER_NOT_MAPPING,
            f"Front-matter must be a mapping of keys to values, got {type(data).__name__}",
            start_line,
        )
        return None

    return {str(key): value for key, value in data.items()}


def top_level_key_lines(raw: str, start_line: int) -> Dict[str, int]:
    """Map top-level front-matter keys to their absolute line numbers."""
    key_lines: Dict[str, int] = {}
    for offset, line in enumerate(raw.splitlines()):
        match = TOP_LEVEL_KEY_PATTERN.match(line)
        if match:
            key = next(group for group in match.groups() if group is not None)
            key_lines.setdefault(key.strip(), start_line + 1 + offset)
    return key_lines


class FrontMatterValidator:
    """Front-matter validation using Cerberus schemas."""

    def __init__(
        self, required_keys: Optional[List[str]] = None, max_description_length: int = 1024
    ) -> None:
        self.logger: Any = logger.bind(component="validator")  # structlog.BoundLoggerBase
        if required_keys is None:
            required_keys = ["name", "description"]
        self.required_keys = list(required_keys)
        self.max_description_length = max_description_length
        self._setup_schemas()

    def _setup_schemas(self) -> None:
        """Setup validation schemas."""
        string_list = {"type": "list", "schema": {"type": "string"}}

        # Retry/backoff hints
        self.retry_schema = {
            "max_attempts": {"type": "integer", "min": 1},
            "max_retries": {"type": "integer", "min": 0},
            "backoff_ms": {
                "anyof": [
                    {"type": "integer", "min": 0},
                    {"type": "list", "schema": {"type": "integer", "min": 0}},
                ]
            },
            "backoff_strategy": {"type": "string"},
            "retryable_errors": string_list,
        }

        # Parameter validation block
        self.parameter_validation_schema = {
            "schema": {"type": "dict"},
            "strict": {"type": "boolean"},
        }

        # Logging field lists
        self.logging_schema = {
            "fields": string_list,
            "log_fields": string_list,
            "level": {"type": "string"},
        }

        self.front_matter_schema: Dict[str, Any] = {
            "name": {"type": "string", "nullable": True},
            "description": {"type": "string", "nullable": True},
            "version": {"type": ["string", "number"], "nullable": True},
            "sasmp_version": {"type": ["string", "number"], "nullable": True},
            "bonded_agent": {"type": "string", "nullable": True},
            "bond_type": {"type": "string", "nullable": True},
            "tags": {**string_list, "nullable": True},
            "retry_config": {
                "type": "dict",
                "schema": self.retry_schema,
                "allow_unknown": True,
                "nullable": True,
            },
            "parameter_validation": {
                "type": "dict",
                "schema": self.parameter_validation_schema,
                "allow_unknown": True,
                "nullable": True,
            },
            "logging": {
                "type": "dict",
                "schema": self.logging_schema,
                "allow_unknown": True,
                "nullable": True,
            },
        }

    def validate_front_matter(
        self,
        data: Dict[str, Any],
        key_lines: Optional[Dict[str, int]] = None,
        default_line: Optional[int] = None,
        source: str = "<string>",
        segment: Optional[int] = None,
    ) -> Tuple[bool, List[LintIssue], List[LintIssue]]:
        """
        Validate a parsed front-matter mapping.

        Args:
            data: Parsed front-matter
            key_lines: Absolute line of each top-level key, for issue locations
            default_line: Line used for keys that are absent
            source: Document label
            segment: Segment index inside a concatenated file

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        key_lines = key_lines or {}
        collector = IssueCollector(source, segment)

        # Required keys
        for key in self.required_keys:
            if key not in data:
                collector.error(
                    LintCode.FRONTMATTER_MISSING_KEY,
                    f"Front-matter is missing required key '{key}'",
                    default_line,
                )
            elif _is_blank(data[key]):
                collector.error(
                    LintCode.FRONTMATTER_EMPTY_KEY,
                    f"Front-matter key '{key}' must not be empty",
                    key_lines.get(key, default_line),
                )

        # Known optional keys
        validator = Validator(self.front_matter_schema)  # type: ignore[misc]
        validator.allow_unknown = True  # Allow extra fields  # type: ignore[attr-defined]
        if not validator.validate(data):  # type: ignore[misc]
            for path, message in self._format_validation_errors(validator.errors):  # type: ignore[attr-defined]
                top_key = re.split(r"[.\[]", path, maxsplit=1)[0]
                collector.error(
                    LintCode.FRONTMATTER_SCHEMA, message, key_lines.get(top_key, default_line)
                )

        self._perform_custom_validations(data, key_lines, default_line, collector)

        errors = [i for i in collector.issues if i.severity == Severity.ERROR]
        warnings = [i for i in collector.issues if i.severity == Severity.WARNING]
        return len(errors) == 0, errors, warnings

    def _format_validation_errors(self, errors: Any, path: str = "") -> List[Tuple[str, str]]:
        """Flatten Cerberus validation errors into (path, message) pairs."""
        formatted: List[Tuple[str, str]] = []

        for field, error_info in errors.items():
            if isinstance(field, int):
                current_path = f"{path}[{field}]"
            else:
                current_path = f"{path}.{field}" if path else str(field)

            items = error_info if isinstance(error_info, list) else [error_info]
            for error in items:
                if isinstance(error, dict):
                    formatted.extend(self._format_validation_errors(error, current_path))
                else:
                    formatted.append((current_path, f"{current_path}: {error}"))

        return formatted

    def _perform_custom_validations(
        self,
        data: Dict[str, Any],
        key_lines: Dict[str, int],
        default_line: Optional[int],
        collector: IssueCollector,
    ) -> None:
        """Style checks that only produce warnings."""
        name = data.get("name")
        if isinstance(name, str) and name.strip() and not NAME_PATTERN.match(name.strip()):
            collector.warning(
                LintCode.NAME_FORMAT,
                f"Name '{name.strip()}' should be lowercase kebab-case (e.g. 'api-design')",
                key_lines.get("name", default_line),
            )

        description = data.get("description")
        if isinstance(description, str) and len(description.strip()) > self.max_description_length:
            collector.warning(
                LintCode.DESCRIPTION_LENGTH,
                f"Description is {len(description.strip())} characters long "
                f"(limit {self.max_description_length})",
                key_lines.get("description", default_line),
            )


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) == 0
    return False


def check_body(body: str, body_start_line: int, collector: IssueCollector) -> None:
    """
    Structural checks on the Markdown body.

    Args:
        body: Markdown text following the front-matter
        body_start_line: Absolute line of the first body line
        collector: Issue sink
    """
    if not body.strip():
        collector.error(
            LintCode.EMPTY_BODY,
            "Document has no content after the front-matter",
            body_start_line,
        )
        return

    # Trailing sentinel exposes the fence state after the last line
    lines = body.splitlines() + [""]
    has_heading = False
    open_fence_line: Optional[int] = None

    for i, line, inside_fence, marker in iter_fenced_lines(lines):
        if inside_fence:
            continue
        open_fence_line = None
        if marker is not None:
            open_fence_line = body_start_line + i
        elif HEADING_PATTERN.match(line):
            has_heading = True

    if open_fence_line is not None:
        collector.warning(
            LintCode.UNCLOSED_CODE_FENCE,
            "Code fence is never closed",
            open_fence_line,
        )

    if not has_heading:
        collector.warning(
            LintCode.MISSING_HEADING,
            "Document body has no Markdown heading",
            body_start_line,
        )


class SkillDocumentParser:
    """Parser for a single skill document."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(parser="skill_document")  # structlog.BoundLoggerBase
        self.validator = FrontMatterValidator(
            required_keys=self.settings.required_keys,
            max_description_length=self.settings.max_description_length,
        )

    async def parse(
        self,
        content: str,
        source: str = "<string>",
        segment: Optional[int] = None,
        first_line: int = 1,
    ) -> ParseResult:
        """
        Parse skill document content into a SkillDocument.

        Args:
            content: Raw document text (one logical document)
            source: Label used in issue locations
            segment: Segment index when the document came from a concatenated file
            first_line: Absolute line number of the first line of `content`

        Returns:
            ParseResult containing the parsed document and its lint issues
        """
        start_time = time.time()
        collector = IssueCollector(source, segment)

        split = split_front_matter(content, first_line)
        front_matter: Optional[FrontMatter] = None

        if split.unterminated:
            collector.error(
                LintCode.FRONTMATTER_UNTERMINATED,
                "Front-matter block opened with '---' is never closed",
                split.start_line,
            )
        elif split.has_block:
            raw = split.raw or ""
            data = load_front_matter_yaml(raw, split.start_line, collector)
            front_matter = FrontMatter(
                raw=raw,
                data=data or {},
                start_line=split.start_line,
                end_line=split.end_line or split.start_line,
            )
            if data is not None:
                _, errors, warnings = self.validator.validate_front_matter(
                    data,
                    key_lines=top_level_key_lines(raw, split.start_line),
                    default_line=split.start_line,
                    source=source,
                    segment=segment,
                )
                collector.issues.extend(errors)
                collector.issues.extend(warnings)

        check_body(split.body, split.body_start_line, collector)

        document = SkillDocument(
            source=source,
            segment=segment,
            front_matter=front_matter,
            body=split.body,
            body_start_line=split.body_start_line,
        )

        self.logger.debug(
            "Parsed skill document",
            source=source,
            segment=segment,
            has_front_matter=front_matter is not None,
            issues=len(collector.issues),
        )

        return ParseResult(
            success=not collector.has_errors,
            document=document,
            issues=collector.issues,
            processing_time=time.time() - start_time,
        )

    async def validate_syntax(self, content: str) -> bool:
        """
        Validate front-matter syntax without running lint rules.

        Args:
            content: Raw document text

        Returns:
            True if the front-matter (when present) is a closed, valid YAML mapping
        """
        split = split_front_matter(content)
        if split.unterminated:
            return False
        if not split.has_block:
            return True
        return load_front_matter_yaml(split.raw or "", split.start_line, IssueCollector()) is not None


async def parse_skill_document(
    content: str,
    source: str = "<string>",
    segment: Optional[int] = None,
    first_line: int = 1,
    settings: Optional[Settings] = None,
) -> ParseResult:
    """
    Parse one skill document using the configured lint rules.

    Args:
        content: Raw document text
        source: Label used in issue locations
        segment: Segment index inside a concatenated file
        first_line: Absolute line number of the first line of `content`
        settings: Optional settings override

    Returns:
        ParseResult containing the parsed document and its lint issues
    """
    parser = SkillDocumentParser(settings)
    return await parser.parse(content, source=source, segment=segment, first_line=first_line)


async def validate_front_matter_syntax(content: str) -> bool:
    """
    Validate front-matter syntax without full parsing.

    Args:
        content: Raw document text

    Returns:
        True if syntax is valid, False otherwise
    """
    parser = SkillDocumentParser()
    return await parser.validate_syntax(content)


_SUGGESTIONS: Dict[LintCode, str] = {
    LintCode.FRONTMATTER_UNTERMINATED: "Close the front-matter block with a '---' line",
    LintCode.FRONTMATTER_INVALID_YAML: "Check front-matter indentation and quote values containing ':'",
    LintCode.FRONTMATTER_NOT_MAPPING: "Front-matter must be 'key: value' pairs, not a list or scalar",
    LintCode.FRONTMATTER_MISSING_KEY: "Add the required 'name' and 'description' front-matter keys",
    LintCode.FRONTMATTER_EMPTY_KEY: "Give every required front-matter key a non-empty value",
    LintCode.FRONTMATTER_SCHEMA: "Fix the front-matter value types reported by the schema check",
    LintCode.EMPTY_BODY: "Add Markdown content after the front-matter block",
    LintCode.EMPTY_SEGMENT: "Remove doubled document separators or add the missing document",
    LintCode.EMPTY_FILE: "Delete empty files or add a skill document to them",
    LintCode.DUPLICATE_NAME: "Give each skill document a unique 'name'",
    LintCode.NAME_FORMAT: "Use lowercase kebab-case names such as 'api-design'",
    LintCode.DESCRIPTION_LENGTH: "Shorten the description to a one or two sentence summary",
    LintCode.UNCLOSED_CODE_FENCE: "Close every ``` code fence",
    LintCode.MISSING_HEADING: "Start the document body with a '# Title' heading",
    LintCode.READ_ERROR: "Make sure the file is readable and UTF-8 encoded",
}


def get_lint_suggestions(issues: List[LintIssue]) -> List[str]:
    """
    Generate fix suggestions for a list of lint issues.

    Args:
        issues: Lint issues

    Returns:
        Up to 5 unique suggestions, errors first
    """
    ordered = sorted(issues, key=lambda i: i.severity != Severity.ERROR)

    unique_suggestions: List[str] = []
    for issue in ordered:
        suggestion = _SUGGESTIONS.get(issue.code)
        if suggestion and suggestion not in unique_suggestions:
            unique_suggestions.append(suggestion)

    return unique_suggestions[:5]


def get_front_matter_schema_info(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Get front-matter schema information for documentation/tooling.

    Returns:
        Dictionary containing schema information
    """
    settings = settings or get_settings()
    validator = FrontMatterValidator(
        required_keys=settings.required_keys,
        max_description_length=settings.max_description_length,
    )

    return {
        "version": "1.0",
        "required_keys": validator.required_keys,
        "front_matter_schema": validator.front_matter_schema,
        "document_separator": settings.document_separator,
        "lint_codes": [code.value for code in LintCode],
        "max_description_length": validator.max_description_length,
        "example_minimal": (
            "---\n"
            "name: api-design\n"
            "description: REST and GraphQL API design guidelines\n"
            "---\n\n"
            "# API Design\n"
        ),
    }
