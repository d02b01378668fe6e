import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from inhash import __version__
from inhash.api.deps import get_context

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Load rules and wire the context on startup (fail-fast)
    try:
        ctx = app.dependency_overrides.get(get_context, get_context)()
        logger.info("Context ready (phase: %s)", ctx.orchestrator.phase.value)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Rules load failed: %s", e)
        sys.exit(1)

    yield

    await ctx.aclose()


app = FastAPI(
    title="INHASH Linking API",
    version=__version__,
    lifespan=lifespan,
)

# --- Routers ---
from inhash.api.routes import auth, link, state  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(link.router, prefix="/api/link", tags=["Link"])
app.include_router(state.router, prefix="/api", tags=["State"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
