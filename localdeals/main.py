from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from localdeals.api.dependencies import get_deal_service
from localdeals.api.router import api_router
from localdeals.config import get_settings
from localdeals.deals.exceptions import (
    DealError,
    IdentityExhaustion,
    LocationResolutionError,
    NotFoundError,
    ValidationError,
)

settings = get_settings()

ERROR_STATUS_CODES = {
    ValidationError: 400,
    LocationResolutionError: 400,
    NotFoundError: 404,
    IdentityExhaustion: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    yield

    # 只在服務已建立時關閉 geocoder 連線
    if get_deal_service.cache_info().currsize:
        get_deal_service().geocoder.close()
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="Local Deals API",
    description="Crowd-sourced local deals board",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

# Configure CORS origins
default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
if settings.cors_origins:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
else:
    cors_origins = default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(DealError)
async def deal_error_handler(request: Request, exc: DealError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
