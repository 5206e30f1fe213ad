"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import roadmaps, skills
from app.core.auth import DEFAULT_USER_ID
from app.core.config import get_settings
from app.core.database import close_db, get_db_session, init_db
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging, get_logger
from app.services import skill_service, user_service

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging(debug=settings.DEBUG)
    logger.info(
        "Starting Trilha",
        version=settings.APP_VERSION,
        env=settings.ENV,
        debug=settings.DEBUG,
        ai_enabled=settings.ai_enabled,
    )
    await init_db()
    async with get_db_session() as db:
        await user_service.ensure_user(db, DEFAULT_USER_ID, name="guest")
        if settings.SEED_SKILL_CATALOG:
            await skill_service.seed_skill_catalog(db)
    yield
    # Shutdown
    logger.info("Shutting down Trilha")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Career roadmaps synthesized from a skill catalog",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(roadmaps.router, prefix="/api")
app.include_router(skills.router, prefix="/api")


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "env": settings.ENV,
    }


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        reload=settings.is_development and settings.WORKERS == 1,
    )
