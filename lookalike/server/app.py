"""FastAPI server exposing the lookalike search endpoint."""
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ..api.bedrock import create_runtime_client
from ..api.description_api import DescriptionClient
from ..api.embedding_api import EmbeddingClient
from ..config import Settings
from ..core.pipeline import SearchPipeline
from ..errors import (
    INTERNAL_ERROR_MESSAGE,
    MISSING_IMAGE_MESSAGE,
    UpstreamError,
    ValidationError,
)
from ..logging_utils import setup_logging
from ..storage.vector_search import SimilaritySearchClient, connect_database, ping
from .schemas import HealthResponse, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings, db, runtime) -> SearchPipeline:
    """Wire the pipeline stages to the shared database and Bedrock clients."""
    return SearchPipeline(
        embedder=EmbeddingClient(runtime, settings.embedding_model),
        searcher=SimilaritySearchClient.from_database(db, settings),
        describer=DescriptionClient(runtime, settings.description_model),
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.pipeline is not None:
        # Injected by the caller, nothing to open
        yield
        return

    settings = app.state.settings or Settings.from_env()
    setup_logging(settings.debug)

    # Raising here aborts startup before any request is accepted
    client, db = connect_database(settings)
    runtime = create_runtime_client(settings)

    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings, db, runtime)
    app.state.health_check = lambda: ping(db)
    logger.info("Ready to serve on port %d", settings.port)

    yield

    client.close()
    logger.info("MongoDB connection closed")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_pipeline(request: Request) -> SearchPipeline:
    return request.app.state.pipeline


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

async def handle_validation_error(request: Request, exc: ValidationError):
    logger.info("Rejected upload: %s", exc.message)
    return PlainTextResponse(exc.message, status_code=400)


async def handle_bad_body(request: Request, exc: RequestValidationError):
    logger.info("Rejected request body: %s", exc.errors())
    return PlainTextResponse(MISSING_IMAGE_MESSAGE, status_code=400)


async def handle_upstream_error(request: Request, exc: UpstreamError):
    logger.error("Upstream failure on %s: %s", request.url.path, exc, exc_info=exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    pipeline: Optional[SearchPipeline] = None,
    health_check: Optional[Callable[[], bool]] = None,
) -> FastAPI:
    """Create the application.

    Args:
        settings: Settings to use. Read from the environment at startup if omitted
        pipeline: Pre-built pipeline. When given, no connections are opened
        health_check: Callable reporting document store health (with ``pipeline``)
    """
    app = FastAPI(
        title="Lookalike Search",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.health_check = health_check or (lambda: True)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_bad_body)
    app.add_exception_handler(UpstreamError, handle_upstream_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        if request.app.state.health_check():
            return HealthResponse(status="ok")
        return JSONResponse({"status": "unavailable"}, status_code=503)

    @app.post("/api/search", response_model=SearchResponse)
    def search(body: SearchRequest, pipeline: SearchPipeline = Depends(get_pipeline)):
        outcome = pipeline.run(body.img)
        return SearchResponse(**outcome.to_dict())

    return app
