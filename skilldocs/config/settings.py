"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Annotated, Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
import json
from pathlib import Path


DEFAULT_SEPARATOR = "<!-- SKILL-DOCUMENT-SEPARATOR -->"


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="skilldocs", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    # Corpus Configuration
    skills_root: Path = Field(default=Path("."), description="Root directory of the skill corpus")
    include_patterns: Annotated[List[str], NoDecode] = Field(
        default=["**/*.md"], description="Glob patterns selecting skill documents"
    )
    exclude_patterns: Annotated[List[str], NoDecode] = Field(
        default=["**/node_modules/**", "**/.git/**"], description="Glob patterns to skip"
    )
    document_separator: str = Field(
        default=DEFAULT_SEPARATOR,
        description="Literal line separating documents concatenated in one file",
    )

    # Lint Rule Configuration
    required_keys: Annotated[List[str], NoDecode] = Field(
        default=["name", "description"], description="Front-matter keys that must be non-empty"
    )
    max_description_length: int = Field(
        default=1024, description="Description length above which a warning is emitted"
    )
    fail_on_warnings: bool = Field(default=False, description="Treat warnings as failures")
    max_concurrency: int = Field(default=16, description="Files linted concurrently")

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="API server host")
    port: int = Field(default=8000, description="API server port")
    mcp_host: str = Field(default="127.0.0.1", description="MCP HTTP health server host")
    mcp_port: int = Field(default=3001, description="MCP HTTP health server port")
    allowed_hosts: Annotated[List[str], NoDecode] = Field(
        default=["*"], description="Allowed hosts for CORS"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("document_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Separator must be a non-empty single line."""
        v = v.strip()
        if not v or "\n" in v:
            raise ValueError("Document separator must be a non-empty single line")
        if v in ("---", "..."):
            raise ValueError("Document separator cannot be a front-matter delimiter")
        return v

    @field_validator("max_description_length", "max_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Limits must be positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator(
        "allowed_hosts", "include_patterns", "exclude_patterns", "required_keys", mode="before"
    )
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse list settings from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["a", "b"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "a,b"
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="SKILLDOCS_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings(**overrides) -> Settings:
    """Reload settings from environment, applying explicit overrides."""
    global settings
    settings = Settings(**overrides)
    return settings
