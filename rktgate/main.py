"""
rktgate Daemon - Main Entry Point

Serves the rkt compatibility gate over HTTP on port 8766.

Endpoints:
- GET  /health                     - Health check
- GET  /api/v1/rkt/compat/status   - Committed versions and check statistics
- POST /api/v1/rkt/compat/check    - Run a compatibility check

A check runs once at startup. A failed startup check is logged and the
daemon keeps serving, so the status endpoint can report why.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI

from . import __version__
from .config.gate_config import load_requirements
from .service.runtime.compat_gate import (
    create_compatibility_routes,
    get_compatibility_gate,
)
from .service.runtime.errors import CompatibilityError, TransportError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("rktgate.daemon")


def run_startup_check():
    """Run the admission check once the daemon is up."""
    logger.info("rktgate starting up")

    try:
        requirements = load_requirements()
        result = get_compatibility_gate().check_requirements(requirements)
    except CompatibilityError as e:
        logger.error(f"rkt integration unusable: {e}")
    except (TransportError, OSError, ValueError) as e:
        logger.error(f"rkt compatibility check could not run: {e}")
    else:
        logger.info(f"rkt integration ready: {result.state.to_dict()}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    run_startup_check()
    yield
    logger.info("rktgate shutting down")


app = FastAPI(
    title="rktgate",
    description="Version compatibility gate for the rkt container runtime",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(create_compatibility_routes())


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    state = get_compatibility_gate().state
    return {
        "status": "ok",
        "service": "rktgate",
        "version": __version__,
        "rkt_verified": state.is_verified,
        "timestamp": datetime.utcnow().isoformat() + "Z",
    }


def run():
    """Start the daemon with uvicorn."""
    uvicorn.run(
        app,
        host=os.getenv("RKTGATE_HOST", "127.0.0.1"),
        port=int(os.getenv("RKTGATE_PORT", "8766")),
        log_level="info",
    )


if __name__ == "__main__":
    run()
