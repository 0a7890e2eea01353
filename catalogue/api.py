"""
FastAPI application serving the cached course catalogue.

- GET   /v1/courses/{code}   cached course, a miss crawls the course's department first
- GET   /v1/courses          every cached course
- PATCH /v1/courses          re-resolve the semester and crawl everything again
- GET   /v1/semesters/{code} semester details, 'current' asks the configured resolver
- GET   /metrics             Prometheus exposition of the crawler and request collectors
"""
import logging
import platform
import socket
import threading
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import orjson
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalogue import config
from catalogue.engine import CrawlEngine
from catalogue.errors import (
    CatalogueError,
    ConfigError,
    CourseNotFoundError,
    FetchError,
    ValidationError,
)
from catalogue.metrics import HTTP_REQUEST_SECONDS, HTTP_REQUESTS
from catalogue.models import ApiError, Manifest
from catalogue.resolvers import BaseResolver
from catalogue.semester import parse_semester

logger = logging.getLogger(__name__)

# Course codes start with the 4 letter department token, e.g. COMP1021
DEPARTMENT_PREFIX_LENGTH = 4


class ORJSONResponse(JSONResponse):
    media_type = "application/json"

    def render(self, content) -> bytes:
        return orjson.dumps(content)


def build_manifest() -> Manifest:
    return Manifest(
        name=config.APP_NAME,
        version=config.APP_VERSION,
        runtime=f"{platform.python_implementation()} {platform.python_version()}",
        platform=f"{platform.system().lower()} {platform.machine()}",
        hostname=socket.gethostname() or "localhost",
        build_commit=config.BUILD_COMMIT,
        build_date=config.BUILD_DATE,
        start_time=datetime.now(timezone.utc),
    )


def _error(status_code: int, kind: str, message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content=ApiError(kind=kind, message=message).model_dump())


def normalize_course_code(code: str) -> str:
    return "".join(code.split()).upper()


router = APIRouter()


@router.get("/")
def redirect_root():
    return RedirectResponse("/v1", status_code=301)


@router.get("/v1")
def introspection(request: Request):
    return request.app.state.manifest.public()


@router.get("/healthz")
def health_check():
    return {"status": "ok"}


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/v1/semesters/{semester}")
def get_semester(semester: str, request: Request):
    if semester == "current":
        semester = request.app.state.resolver.current_semester_code()
    return parse_semester(semester).model_dump()


@router.get("/v1/courses/{course}")
def get_course(course: str, request: Request):
    code = normalize_course_code(course)
    if len(code) < DEPARTMENT_PREFIX_LENGTH:
        raise ValidationError(f"Course code '{course}' is too short to contain a department.")

    store = request.app.state.store
    record = store.get(code)
    if record is None:
        # Blocks this request until the department page has been crawled
        request.app.state.engine.crawl_department(code[:DEPARTMENT_PREFIX_LENGTH])
        record = store.get(code)
    if record is None:
        raise CourseNotFoundError(f"No course found for '{code}'.")
    return record.model_dump()


@router.get("/v1/courses")
def get_courses(request: Request):
    return {code: record.model_dump() for code, record in request.app.state.store.snapshot().items()}


@router.patch("/v1/courses")
def refresh_courses(request: Request):
    engine: CrawlEngine = request.app.state.engine
    engine.set_semester(request.app.state.resolver.current_semester_code())
    engine.crawl_all()
    return {code: record.model_dump() for code, record in engine.store.snapshot().items()}


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, error: ValidationError):
        return _error(400, "validation", str(error))

    @app.exception_handler(CourseNotFoundError)
    async def handle_not_found(request: Request, error: CourseNotFoundError):
        return _error(404, "not_found", str(error))

    @app.exception_handler(ConfigError)
    async def handle_config(request: Request, error: ConfigError):
        logger.error("Could not resolve the current semester: %s", error)
        return _error(502, "upstream", "Could not resolve the current semester.")

    @app.exception_handler(FetchError)
    async def handle_fetch(request: Request, error: FetchError):
        logger.error("Catalogue fetch failed: %s", error)
        return _error(502, "upstream", "The course catalogue is unavailable.")

    @app.exception_handler(CatalogueError)
    async def handle_catalogue(request: Request, error: CatalogueError):
        logger.error("Unhandled catalogue error: %s", error)
        return _error(500, "internal", "Internal server error.")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, error: StarletteHTTPException):
        return _error(error.status_code, "http", str(error.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, error: Exception):
        logger.exception("Unexpected error on %s %s", request.method, request.url.path)
        return _error(500, "internal", "Internal server error.")


def _precache(engine: CrawlEngine) -> None:
    try:
        engine.crawl_all()
    except Exception:
        logger.exception("Pre-caching the current semester failed")


def create_app(engine: CrawlEngine, resolver: BaseResolver, manifest: Manifest | None = None, precache: bool = False) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if precache:
            # The API serves whatever is cached so far while the crawl runs
            threading.Thread(target=_precache, args=(engine,), name="precache", daemon=True).start()
        yield
        engine.fetcher.close()

    app = FastAPI(
        title="Course Catalogue API",
        version=config.APP_VERSION,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.store = engine.store
    app.state.resolver = resolver
    app.state.manifest = manifest or build_manifest()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        HTTP_REQUESTS.labels(method=request.method, status=response.status_code).inc()
        HTTP_REQUEST_SECONDS.labels(method=request.method).observe(elapsed)
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed * 1000)
        return response

    logger.info("Setting up route handlers")
    _register_error_handlers(app)
    app.include_router(router)

    return app
