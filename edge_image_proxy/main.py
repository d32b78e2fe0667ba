import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .dependencies import build_state, get_ingestion_handler, get_retrieval_handler
from .errors import ProcessingFailure, ProxyError
from .ingestion import API_KEY_HEADER, IngestionHandler
from .retrieval import RetrievalHandler
from .schemas import IngestionResponse

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter()


@router.options("/{path:path}", include_in_schema=False)
def preflight(path: str) -> Response:
    """Answer OPTIONS requests that are not CORS preflights."""
    return Response(status_code=204)


@router.put("/upload", response_model=IngestionResponse)
async def upload_images(
    request: Request,
    handler: IngestionHandler = Depends(get_ingestion_handler),
) -> IngestionResponse:
    """Store images given as a JSON list of URLs or as multipart ``files`` parts.

    Returns:
        IngestionResponse: Stored path, etag and content type keyed by the
            source URL or uploaded filename.
    """
    images = await handler.ingest(request)
    return IngestionResponse(images)


@router.get("/images/{filename}.{extension}")
async def get_image(
    filename: str,
    extension: str,
    request: Request,
    background_tasks: BackgroundTasks,
    handler: RetrievalHandler = Depends(get_retrieval_handler),
) -> Response:
    """Serve a stored image through the response cache."""
    return await handler.retrieve(str(request.url), filename, extension, background_tasks)


async def proxy_error_handler(request: Request, exc: ProxyError) -> PlainTextResponse:
    status_code = exc.status_code
    if isinstance(exc, ProcessingFailure):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        if request.app.state.proxy.settings.compat_error_status:
            status_code = 200
    return PlainTextResponse(exc.render(), status_code=status_code)


async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code in (404, 405):
        return PlainTextResponse("404, not found!", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its collaborators.

    Args:
        settings: Settings to use; defaults to the cached environment settings.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings or get_settings()
    state = build_state(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Storage type: {settings.storage_type}")
        logger.info(f"Public domain: {settings.domain}")
        if not settings.api_key:
            logger.warning("API_KEY is not set; all uploads will be rejected")

        yield

        await state.http_client.aclose()
        logger.info("Shutting down application")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.proxy = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=CORS_METHODS,
        allow_headers=["Content-Type", API_KEY_HEADER],
        max_age=settings.cors_max_age,
    )

    app.add_exception_handler(ProxyError, proxy_error_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.include_router(router)

    return app


# Get settings and configure logging before anything else
_settings = get_settings()
_settings.configure_logging()

app = create_app(_settings)
