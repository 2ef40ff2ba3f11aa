"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from communities.presentation import router as communities_router
from infrastructure.database.dependencies import close_database_connections
from infrastructure.logging import configure_logging
from infrastructure.settings import get_settings
from infrastructure.version import __version__
from tenancy.presentation import register_exception_handlers
from tenancy.presentation import router as tenancy_router


@asynccontextmanager
async def communities_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Database engine lifecycle (created lazily, disposed on shutdown)
    """
    configure_logging(debug=get_settings().debug)
    yield
    await close_database_connections()


app = FastAPI(
    title=get_settings().app_name,
    description="Multi-tenant online communities backend with end-to-end tenant isolation",
    version=__version__,
    lifespan=communities_lifespan,
)

register_exception_handlers(app)

# Identity-provider integrations plug in with
# tenancy.dependencies.use_claims_verifier(app, verifier).

app.include_router(tenancy_router)
app.include_router(communities_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}
