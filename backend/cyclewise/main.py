import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cyclewise.ai.factory import build_forecast_backend
from cyclewise.config import get_settings
from cyclewise.database import create_tables, engine
from cyclewise.integrations.ultrahuman.client import UltrahumanClient
from cyclewise.services.analytics_config import load_analytics_config_from_yaml

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables(engine)

    if settings.analytics_config_path:
        load_analytics_config_from_yaml(settings.analytics_config_path)
        logger.info("Analytics thresholds loaded from %s", settings.analytics_config_path)

    app.state.ultrahuman_client = UltrahumanClient(settings)
    app.state.forecast_backend = build_forecast_backend(settings)
    logger.info("%s started (%s)", settings.app_name, settings.environment)

    yield

    # Cleanup on shutdown
    await app.state.forecast_backend.close()
    await app.state.ultrahuman_client.close()
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title="Cyclewise API",
    description="Backend API for cycle-aware wellness tracking, Ultrahuman sync and forecasts",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input is a client error (400) with per-field details."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.environment}


# API routers
from cyclewise.api.v1.router import api_router

app.include_router(api_router, prefix="/api/v1")
