"""
Taskgate - governance engine for an organisational task tracker.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from taskgate.database import init_db
from taskgate.routes import notifications, projects, subtasks, tasks
from taskgate.exceptions import register_exception_handlers
from taskgate.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Taskgate API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Taskgate API...")


app = FastAPI(
    title="Taskgate",
    description="Projects, tasks and subtasks with role- and department-based access control",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(projects.router, prefix="/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(subtasks.router, prefix="/subtasks", tags=["Subtasks"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
