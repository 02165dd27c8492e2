"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from mealagent.config import get_settings
from mealagent.dependencies import get_product_catalog, get_recipe_catalog
from mealagent.logging_config import LoggingContext, configure_logging, get_logger
from mealagent.routers import plans_router, pricing_router, shopping_router

settings = get_settings()

# Configure logging on module load
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Mealagent API")

    catalog = get_product_catalog()
    recipes = get_recipe_catalog()
    logger.info(f"Reference data ready: {len(catalog)} ingredient mappings, {len(recipes)} recipes")

    yield

    logger.info("Shutting down Mealagent API")


app = FastAPI(
    title="Mealagent API",
    description="Weekly dinner planning with priced shopping lists",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Tag every log line of a request with its request id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(plans_router)
app.include_router(shopping_router)
app.include_router(pricing_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "mealagent-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Mealagent API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
