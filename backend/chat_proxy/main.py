import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .middleware import CORSHeadersMiddleware, ErrorHandlingMiddleware, RequestLoggingMiddleware
from .router import ChatRouter, available_models
from .schemas import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, ModelList
from .settings import Settings, load_server_settings, load_settings

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

MESSAGES_REQUIRED = "Messages array is required and cannot be empty"
INVALID_MESSAGE = "Each message needs a role of user, assistant or system and text content"
CHAT_FAILED = "Failed to process chat request"

api = APIRouter(prefix="/api")


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


def get_chat_router(request: Request) -> ChatRouter:
    return request.app.state.chat_router


@api.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(load_settings)):
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return HealthResponse(
        status="healthy",
        timestamp=timestamp.replace("+00:00", "Z"),
        version=VERSION,
        llm_providers={
            "openai": settings.has_credential("openai"),
            "anthropic": settings.has_credential("anthropic"),
            "gemini": settings.has_credential("gemini"),
            "demo_mode": settings.demo_mode,
        },
    )


@api.post(
    "/chat",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    request: Request,
    settings: Settings = Depends(load_settings),
    chat_router: ChatRouter = Depends(get_chat_router),
):
    try:
        body = await request.json()
        messages = body.get("messages") if isinstance(body, dict) else None
        if not isinstance(messages, list) or not messages:
            return error_response(status.HTTP_400_BAD_REQUEST, MESSAGES_REQUIRED)

        try:
            chat_request = ChatRequest.model_validate(body)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            if "messages" in fields:
                return error_response(status.HTTP_400_BAD_REQUEST, INVALID_MESSAGE)
            return error_response(
                status.HTTP_400_BAD_REQUEST, f"Invalid value for: {', '.join(fields)}"
            )

        return await chat_router.route(chat_request, settings)
    except Exception:
        logger.exception("Chat endpoint error")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, CHAT_FAILED)


@api.get("/models", response_model=ModelList)
def list_models(settings: Settings = Depends(load_settings)):
    return ModelList(models=available_models(settings))


async def not_found(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # unknown methods on known paths are reported as unknown routes too
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Not Found", "path": request.url.path},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    if settings.demo_mode:
        logger.warning("No LLM provider credentials found; running in demo mode")
    else:
        configured = [n for n in ("openai", "anthropic", "gemini") if settings.has_credential(n)]
        logger.info("LLM providers configured: %s", ", ".join(configured))
    yield
    logger.info("Shutting down...")


def create_app(chat_router: Optional[ChatRouter] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    logging.basicConfig(level=load_server_settings().log_level)

    app = FastAPI(
        title="LLM Chat Proxy",
        version=VERSION,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.chat_router = chat_router or ChatRouter()

    app.add_exception_handler(StarletteHTTPException, not_found)

    # Last added runs first: CORS wraps logging, which wraps error handling.
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CORSHeadersMiddleware)

    app.include_router(api)
    return app


app = create_app()
