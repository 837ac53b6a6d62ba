"""
Pydantic Models and Schemas
===========================

Core data models for skill documents, lint findings, corpus reports and
API/MCP requests and responses.
"""

from typing import Optional, List, Dict, Any, Literal
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class Severity(str, Enum):
    """Lint issue severity."""
    ERROR = "error"
    WARNING = "warning"


class LintCode(str, Enum):
    """Stable identifiers for every lint rule."""
    READ_ERROR = "read-error"
    EMPTY_FILE = "empty-file"
    FRONTMATTER_UNTERMINATED = "frontmatter-unterminated"
    FRONTMATTER_INVALID_YAML = "frontmatter-invalid-yaml"
    FRONTMATTER_NOT_MAPPING = "frontmatter-not-mapping"
    FRONTMATTER_MISSING_KEY = "frontmatter-missing-key"
    FRONTMATTER_EMPTY_KEY = "frontmatter-empty-key"
    FRONTMATTER_SCHEMA = "frontmatter-schema"
    EMPTY_BODY = "empty-body"
    EMPTY_SEGMENT = "empty-segment"
    DUPLICATE_NAME = "duplicate-name"
    NAME_FORMAT = "name-format"
    DESCRIPTION_LENGTH = "description-length"
    UNCLOSED_CODE_FENCE = "unclosed-code-fence"
    MISSING_HEADING = "missing-heading"


# Lint Models
class LintIssue(BaseModel):
    """A single finding produced by a lint rule."""
    code: LintCode = Field(..., description="Rule identifier")
    severity: Severity = Field(..., description="Issue severity")
    message: str = Field(..., description="Human readable description")
    source: str = Field("<string>", description="File path or label of the document")
    line: Optional[int] = Field(None, ge=1, description="1-based line in the source file")
    segment: Optional[int] = Field(None, ge=0, description="Index inside a concatenated file")

    @property
    def location(self) -> str:
        """`source:line` style location string."""
        label = self.source if self.segment is None else f"{self.source}#{self.segment}"
        return f"{label}:{self.line}" if self.line else label

    def format(self) -> str:
        return f"{self.location}: {self.severity.value} [{self.code.value}] {self.message}"


# Document Models
class FrontMatter(BaseModel):
    """YAML front-matter block of a skill document."""
    raw: str = Field("", description="Verbatim YAML text between the delimiters")
    data: Dict[str, Any] = Field(default_factory=dict, description="Parsed mapping")
    start_line: int = Field(1, ge=1, description="Line of the opening delimiter")
    end_line: int = Field(..., ge=1, description="Line of the closing delimiter")


class SkillDocument(BaseModel):
    """One logical skill document: optional front-matter plus Markdown body."""
    source: str = Field("<string>", description="File path or label")
    segment: Optional[int] = Field(None, ge=0, description="Index inside a concatenated file")
    front_matter: Optional[FrontMatter] = Field(None, description="Parsed front-matter block")
    body: str = Field("", description="Markdown body after the front-matter")
    body_start_line: int = Field(1, ge=1, description="Line where the body starts")

    @property
    def has_front_matter(self) -> bool:
        return self.front_matter is not None

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.front_matter.data if self.front_matter else {}

    @property
    def name(self) -> Optional[str]:
        value = self.metadata.get("name")
        return value.strip() if isinstance(value, str) and value.strip() else None

    @property
    def description(self) -> Optional[str]:
        value = self.metadata.get("description")
        return value.strip() if isinstance(value, str) and value.strip() else None

    @property
    def label(self) -> str:
        return self.source if self.segment is None else f"{self.source}#{self.segment}"


# Parsing Results
class ParseResult(BaseModel):
    """Result of parsing and validating a single skill document."""
    success: bool = Field(..., description="Whether the document has no errors")
    document: Optional[SkillDocument] = Field(None, description="Parsed document")
    issues: List[LintIssue] = Field(default_factory=list, description="Lint findings")
    processing_time: Optional[float] = Field(None, description="Parsing time in seconds")

    @property
    def errors(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]


class DocumentReport(BaseModel):
    """Lint result for one file (or one in-memory content blob)."""
    source: str = Field(..., description="File path or label")
    segments: int = Field(0, ge=0, description="Number of logical documents found")
    documents: List[SkillDocument] = Field(default_factory=list, description="Parsed documents")
    issues: List[LintIssue] = Field(default_factory=list, description="All findings for the file")

    @property
    def errors(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[LintIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def valid(self) -> bool:
        return not self.errors


class CorpusReport(BaseModel):
    """Aggregated lint result for a whole corpus."""
    root: str = Field(..., description="Corpus root that was linted")
    reports: List[DocumentReport] = Field(default_factory=list, description="Per-file reports")
    started_at: datetime = Field(default_factory=_utcnow, description="Lint start time")
    processing_time: float = Field(0.0, ge=0, description="Total processing time in seconds")

    @property
    def documents(self) -> List[SkillDocument]:
        return [doc for report in self.reports for doc in report.documents]

    @property
    def issues(self) -> List[LintIssue]:
        return [issue for report in self.reports for issue in report.issues]

    @property
    def file_count(self) -> int:
        return len(self.reports)

    @property
    def error_count(self) -> int:
        return sum(len(r.errors) for r in self.reports)

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for r in self.reports)

    @property
    def valid(self) -> bool:
        return self.error_count == 0

    def passed(self, fail_on_warnings: bool = False) -> bool:
        """Whether the corpus passes, optionally treating warnings as failures."""
        if fail_on_warnings:
            return self.valid and self.warning_count == 0
        return self.valid

    def summary(self) -> Dict[str, Any]:
        return {
            "files": self.file_count,
            "documents": len(self.documents),
            "errors": self.error_count,
            "warnings": self.warning_count,
            "valid": self.valid,
        }


# Catalog Models
class SkillSummary(BaseModel):
    """Catalog entry describing a loaded skill."""
    name: str = Field(..., description="Skill name from front-matter")
    description: str = Field("", description="Skill description from front-matter")
    source: str = Field(..., description="File the skill was loaded from")
    label: str = Field(..., description="Source label including segment index")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Full front-matter")

    @classmethod
    def from_document(cls, document: SkillDocument) -> "SkillSummary":
        return cls(
            name=document.name or "",
            description=document.description or "",
            source=document.source,
            label=document.label,
            metadata=document.metadata,
        )


# API Request/Response Models
class LintRequest(BaseModel):
    """Request model for linting in-memory content."""
    content: str = Field(..., description="Skill document content (may be concatenated)")
    source: str = Field("<request>", description="Label used in issue locations")
    strict: bool = Field(False, description="Treat warnings as failures")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        """Source label cannot be blank."""
        if not v.strip():
            raise ValueError("Source label cannot be empty")
        return v


class LintResponse(BaseModel):
    """Response model for lint requests."""
    valid: bool = Field(..., description="Whether content passed linting")
    segments: int = Field(0, description="Number of logical documents found")
    issues: List[LintIssue] = Field(default_factory=list, description="Lint findings")
    suggestions: List[str] = Field(default_factory=list, description="Improvement suggestions")


class SkillDetail(SkillSummary):
    """Catalog entry including the Markdown body."""
    body: str = Field("", description="Markdown body")


# Health Check Models
class HealthStatus(BaseModel):
    """Health check status."""
    status: Literal["healthy", "unhealthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    skills_root: str = Field(..., description="Catalogued corpus root")
    skills_loaded: int = Field(0, ge=0, description="Number of catalogued skills")
    catalog_errors: int = Field(0, ge=0, description="Lint errors seen while loading the catalog")


# Error Models
class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
