import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from todo_api import metrics
from todo_api.core.config import get_settings
from todo_api.database import async_session
from todo_api.exception_handlers import setup_exception_handlers
from todo_api.keyvalue.storage import close_storage, init_storage
from todo_api.routers import (
    assignees,
    auth,
    buckets,
    info,
    link_shares,
    lists,
    namespaces,
    saved_filters,
    sharing,
    tasks,
    teams,
    users,
)

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())
    init_storage(settings)
    if settings.enable_metrics:
        async with async_session() as db:
            await metrics.init_metrics(db)
        logger.info("Metrics initialized")
    yield
    await close_storage()


app = FastAPI(
    title="To-Do API",
    description="Async collaborative to-do list API with PostgreSQL and SQLModel",
    swagger_ui_parameters={"displayRequestDuration": True},
    version=settings.service_version,
    docs_url="/docs" if settings.enable_swagger else None,
    redoc_url="/redoc" if settings.enable_swagger else None,
    lifespan=lifespan,
)

setup_exception_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(namespaces.router)
app.include_router(lists.router)
app.include_router(tasks.router)
app.include_router(buckets.router)
app.include_router(assignees.router)
app.include_router(teams.router)
app.include_router(sharing.router)
app.include_router(link_shares.router)
app.include_router(saved_filters.router)
app.include_router(info.router)
if settings.enable_metrics:
    app.include_router(info.metrics_router)


@app.get("/")
async def root():
    return {
        "message": "Welcome to the To-Do API",
        "docs": "/docs",
        "version": settings.service_version,
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
