"""
FastAPI Application
==================

FastAPI application with REST endpoints for linting skill documents and
serving the skill catalog.
"""

from contextlib import asynccontextmanager
import uuid
from pathlib import Path
from typing import AsyncGenerator, Any, List, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from skilldocs.config.settings import get_settings, Settings
from skilldocs.config.logging import get_logger, setup_logging
from skilldocs.core.corpus.catalog import SkillCatalog
from skilldocs.core.corpus.linter import CorpusLinter, check_duplicate_names
from skilldocs.core.errors import CorpusNotFoundError, SkillNotFoundError
from skilldocs.core.frontmatter.parser import get_lint_suggestions
from skilldocs.models.schemas import (
    ErrorResponse,
    HealthStatus,
    LintRequest,
    LintResponse,
    SkillDetail,
    SkillSummary,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting FastAPI application")

    catalog: SkillCatalog = app.state.catalog
    try:
        await catalog.load()
    except CorpusNotFoundError as e:
        # The API stays up so /health can report the problem
        logger.error("Failed to load skill catalog", error=str(e))

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")


# Dependencies
def get_catalog(request: Request) -> SkillCatalog:
    """Dependency to get the application's skill catalog."""
    return request.app.state.catalog  # type: ignore[no-any-return]


def get_app_settings(request: Request) -> Settings:
    """Dependency to get the application's settings."""
    return request.app.state.settings  # type: ignore[no-any-return]


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    details: Optional[dict] = None,  # type: ignore[type-arg]
) -> JSONResponse:
    error_response = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_hosts,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)  # type: ignore
        response.headers["X-Request-ID"] = request_id  # type: ignore

        return response  # type: ignore


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(HTTPException)
    async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Custom HTTP exception handler with structured error response."""
        logger.error(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            request_id=getattr(request.state, "request_id", None),
        )
        return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))

    @app.exception_handler(SkillNotFoundError)
    async def skill_not_found_handler(request: Request, exc: SkillNotFoundError) -> JSONResponse:
        """Unknown skill names map to 404."""
        logger.info("Skill not found", name=exc.name)
        return _error_response(
            request, 404, str(exc), "SKILL_NOT_FOUND", details={"name": exc.name}
        )

    @app.exception_handler(CorpusNotFoundError)
    async def corpus_not_found_handler(request: Request, exc: CorpusNotFoundError) -> JSONResponse:
        """A missing corpus root maps to 404."""
        logger.error("Corpus not found", path=exc.path)
        return _error_response(
            request, 404, str(exc), "CORPUS_NOT_FOUND", details={"path": exc.path}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """General exception handler for unexpected errors."""
        logger.error(
            "Unhandled exception",
            exception=str(exc),
            request_id=getattr(request.state, "request_id", None),
            exc_info=True,
        )
        return _error_response(
            request,
            500,
            "Internal server error",
            "INTERNAL_ERROR",
            details={"exception": str(exc)} if settings.debug else None,
        )


def _register_routes(app: FastAPI) -> None:
    # Root endpoint
    @app.get("/", tags=["General"])
    async def root(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
        """
        Root endpoint with basic API information.
        """
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "description": "Lint and serve Markdown skill documents",
            "docs_url": "/docs" if settings.debug else None,
            "health_check": "/health",
            "endpoints": {
                "lint": "POST /lint",
                "list_skills": "GET /skills",
                "get_skill": "GET /skills/{name}",
                "reload_skills": "POST /skills/reload",
            },
        }

    # Health check endpoint
    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check(
        catalog: SkillCatalog = Depends(get_catalog),
        settings: Settings = Depends(get_app_settings),
    ) -> HealthStatus:
        """
        Get application health status.

        Healthy when the catalog loaded without lint errors, degraded when
        some documents failed linting, unhealthy when the corpus is missing.
        """
        try:
            await catalog.ensure_loaded()
        except CorpusNotFoundError as e:
            logger.error("Health check failed", error=str(e))
            return HealthStatus(
                status="unhealthy",
                version=settings.app_version,
                skills_root=str(catalog.root),
            )

        errors = catalog.report.error_count if catalog.report else 0
        health_status = HealthStatus(
            status="healthy" if errors == 0 else "degraded",
            version=settings.app_version,
            skills_root=str(catalog.root),
            skills_loaded=len(catalog),
            catalog_errors=errors,
        )
        logger.info("Health check completed", status=health_status.status)
        return health_status

    # Lint endpoint
    @app.post("/lint", response_model=LintResponse, tags=["Lint"])
    async def lint_document(
        request: LintRequest, settings: Settings = Depends(get_app_settings)
    ) -> LintResponse:
        """
        Lint skill document content without touching the catalog.

        Args:
            request: Lint request

        Returns:
            Lint result with issues and suggestions
        """
        logger.info("Lint requested", content_length=len(request.content), source=request.source)

        report = await CorpusLinter(settings).lint_content(request.content, request.source)
        check_duplicate_names([report])

        valid = report.valid and not (request.strict and report.warnings)
        response = LintResponse(
            valid=valid,
            segments=report.segments,
            issues=report.issues,
            suggestions=get_lint_suggestions(report.issues),
        )

        logger.info("Lint completed", valid=response.valid, issues=len(response.issues))
        return response

    # Skill catalog endpoints
    @app.get("/skills", response_model=List[SkillSummary], tags=["Skills"])
    async def list_skills(catalog: SkillCatalog = Depends(get_catalog)) -> List[SkillSummary]:
        """List catalogued skills sorted by name."""
        return await catalog.list_skills()

    @app.post("/skills/reload", tags=["Skills"])
    async def reload_skills(catalog: SkillCatalog = Depends(get_catalog)) -> dict[str, Any]:
        """Re-read the corpus from disk."""
        report = await catalog.reload()
        return {"success": True, "skills_loaded": len(catalog), **report.summary()}

    @app.get("/skills/{name}", response_model=SkillDetail, tags=["Skills"])
    async def get_skill(name: str, catalog: SkillCatalog = Depends(get_catalog)) -> SkillDetail:
        """
        Get a skill document by name.

        Args:
            name: Skill name (case-insensitive)

        Returns:
            Skill metadata and Markdown body
        """
        return await catalog.get_skill(name)


def create_app(
    settings: Optional[Settings] = None, root: Optional[Union[str, Path]] = None
) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.
    Used by the CLI, integration tests and uvicorn.

    Args:
        settings: Settings to use (defaults to global settings)
        root: Corpus root overriding settings.skills_root

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Skill Documents API",
        description="Lint and serve Markdown skill documents with YAML front-matter",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.catalog = SkillCatalog(root, settings)

    _register_middleware(app, settings)
    _register_exception_handlers(app, settings)
    _register_routes(app)
    return app


def run_development_server(
    root: Optional[Union[str, Path]] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> None:
    """Run the API server with uvicorn."""
    settings = settings or get_settings()
    uvicorn.run(
        create_app(settings, root),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
        access_log=settings.debug,
    )


def main() -> None:
    """Main entry point for the API server."""
    settings = get_settings()
    setup_logging(settings)
    run_development_server(settings=settings)


if __name__ == "__main__":
    main()
