from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .core.config import ProviderCapabilities, get_settings
from .core.logging import configure_logging
from .api.routes_search import error_response, router as search_router
from .services.llm import LLMService, build_llm_providers
from .services.pipeline import build_pipeline

configure_logging()
settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Own the shared transports for the life of the process.

    The HTTP client and LLM clients are stateless and shared by every
    request; nothing else outlives a request.
    """
    capabilities = ProviderCapabilities.from_settings(settings)
    http_client = httpx.AsyncClient(
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        headers={"User-Agent": "NexSearch/0.1"},
    )
    llm = LLMService(
        build_llm_providers(settings),
        max_concurrency=settings.LLM_MAX_CONCURRENCY,
    )
    app.state.pipeline = build_pipeline(settings, http_client, llm, capabilities)

    enabled = [name for name, on in capabilities.as_dict().items() if on]
    if enabled:
        logger.info("Providers configured: %s", ", ".join(enabled))
    else:
        logger.warning("No provider credentials configured; searches will return empty records")

    yield

    await llm.close()
    await http_client.aclose()
    logger.info("Shut down provider clients")


app = FastAPI(title="NexSearch API", lifespan=lifespan)

# CORS:
# - In prod, FRONTEND_ORIGIN is required and we never fall back to "*".
# - In non-prod, wide-open CORS is only enabled if CORS_ALLOW_ALL_ORIGINS=True.
if settings.ENV.lower() == "prod":
    if not settings.FRONTEND_ORIGIN:
        raise RuntimeError(
            "FRONTEND_ORIGIN must be set in production – refusing to start with wide-open CORS."
        )
    origins = [
        o.strip()
        for o in settings.FRONTEND_ORIGIN.split(",")
        if o.strip()
    ]
elif settings.CORS_ALLOW_ALL_ORIGINS or not settings.FRONTEND_ORIGIN:
    origins = ["*"]
else:
    origins = [
        o.strip()
        for o in settings.FRONTEND_ORIGIN.split(",")
        if o.strip()
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg = err.get("msg", "invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return error_response(400, "Invalid request", "; ".join(messages))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return error_response(500, "Internal server error", str(exc))


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(search_router, prefix=settings.API_PREFIX)
