"""
Taskline - multi-user project and task tracker.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.database import init_db
from app.exceptions import register_exception_handlers
from app.logging_config import get_logger, setup_logging
from app.routes import auth, projects, tasks, users

# Initialize logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Taskline API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Taskline API...")


app = FastAPI(
    title=settings.app_name,
    description="Multi-user project and task tracker",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(users.router, tags=["Users"])
app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/projects/{project_id}/tasks", tags=["Tasks"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
