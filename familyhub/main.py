"""FamilyHub Server - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from familyhub.config import settings
from familyhub.database import init_db
from familyhub.errors import register_exception_handlers


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and initialize the database on startup."""
    configure_logging(settings.log_level)
    init_db()
    logging.getLogger(__name__).info("%s started (db=%s)", settings.server_name, settings.db_path)
    yield


app = FastAPI(
    title="FamilyHub",
    description="Family social backend: posts, events and invite-based membership",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# --- Register API routers ---
from familyhub.api.auth import router as auth_router  # noqa: E402
from familyhub.api.family import router as family_router  # noqa: E402
from familyhub.api.invites import router as invites_router  # noqa: E402
from familyhub.api.posts import router as posts_router  # noqa: E402
from familyhub.api.events import router as events_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(family_router, prefix=API_PREFIX)
app.include_router(invites_router, prefix=API_PREFIX)
app.include_router(posts_router, prefix=API_PREFIX)
app.include_router(events_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Server info."""
    return {
        "name": settings.server_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("familyhub.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
