"""
DepoPro - Warehouse Inventory Tracker
FastAPI Application Entry Point
"""
import uvicorn
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from depopro.core import settings, engine, Base
from depopro.core.errors import DepoError
from depopro.api.router import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("depopro")

# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables if not exist
    Base.metadata.create_all(bind=engine)
    logger.info("%s starting on port %s", settings.APP_NAME, settings.APP_PORT)

    yield

    logger.info("%s shutting down", settings.APP_NAME)

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Warehouse stock ledger, order shortage and guided picking",
    version="1.0.0",
    lifespan=lifespan
)

@app.exception_handler(DepoError)
async def depo_error_handler(request: Request, exc: DepoError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Include routers
app.include_router(api_router, prefix="/api")

# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.APP_NAME}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
