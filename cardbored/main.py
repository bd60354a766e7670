import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardbored.api import cards_router, decklist_router, health_router
from cardbored.config import settings
from cardbored.models.failure import DataUnavailableError, FailureKind, KnownError
from cardbored.services.pricing import create_pricing_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    pricing = create_pricing_services()
    app.state.pricing = pricing

    if settings.warm_price_index_on_startup:
        try:
            await pricing.price_index.ensure_fresh()
        except DataUnavailableError:
            logger.warning("Price index warmup failed; first request will retry")

    yield

    await pricing.aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardbored"),
    lifespan=lifespan,
)

app.include_router(decklist_router)
app.include_router(cards_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request body",
            "kind": FailureKind.INVALID_INPUT.value,
            "detail": problems,
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # Runs outside CORSMiddleware, so the CORS header is set here
    headers = {"Access-Control-Allow-Origin": "*"} if "origin" in request.headers else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "kind": FailureKind.UNKNOWN.value},
        headers=headers,
    )
