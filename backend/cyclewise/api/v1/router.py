from fastapi import APIRouter

from cyclewise.api.v1 import (
    auth,
    config,
    users,
    ultrahuman,
    metrics,
    forecast,
    cycles,
    goals,
    export,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(ultrahuman.router, prefix="/ultrahuman", tags=["ultrahuman"])
api_router.include_router(metrics.router, prefix="/metrics", tags=["metrics"])
api_router.include_router(forecast.router, prefix="/forecast", tags=["forecast"])
api_router.include_router(cycles.router, prefix="/cycles", tags=["cycles"])
api_router.include_router(goals.router, prefix="/goals", tags=["goals"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
