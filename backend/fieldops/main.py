"""Field-ops access control API --- FastAPI application."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
import logging

from fieldops.config import settings
from fieldops.database import async_engine
from fieldops.errors import AccessError, Unauthenticated
from fieldops.services.cache import ConfigCache

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting field-ops API...")

    # Verify DB connection
    try:
        async with async_engine.begin() as conn:
            await conn.exec_driver_sql("SELECT 1")
        logger.info("Database connection verified")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database connection failed: {e}")

    logger.info("Field-ops API started successfully")
    yield

    # Shutdown
    await async_engine.dispose()
    logger.info("Field-ops API shut down")


app = FastAPI(
    title="Field-Ops Access Control",
    description="Authentication, dynamic role permissions and data scoping for the field-service backend",
    version="1.0.0",
    lifespan=lifespan,
)

# One cache per process; every configuration write invalidates it.
app.state.config_cache = ConfigCache()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError):
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


# Import and register routers
from fieldops.routes import admin, auth

app.include_router(auth.router)
app.include_router(admin.router)


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "Field-Ops Access Control API", "version": "1.0.0"}
