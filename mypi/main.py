import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mypi.api.routes import router
from mypi.core.config import VERSION
from mypi.extensions.base import ExtensionAPI, load_extensions

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Load the tool extensions once on startup.
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.state.extensions = load_extensions(ExtensionAPI())
    logger.info("Loaded tools: %s", ", ".join(t.name for t in app.state.extensions.list_tools()))

    yield

    logger.info("Shutting down mypi tool server")

app = FastAPI(
    title="mypi tools",
    description="web_search (SearXNG) and fetch_url tools for coding agents",
    version=VERSION,
    lifespan=lifespan
)

app.include_router(router)

@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "mypi tools",
        "version": VERSION,
        "endpoints": {
            "tools": "GET /tools",
            "invoke": "POST /tools/{name}",
            "health": "GET /health"
        }
    }
