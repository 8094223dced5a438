import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import events_router, memories_router, search_router
from config import load_settings
from mcp_server import mcp
from runtime_state import runtime_state
from store import MemoryStoreError, close_memory_store, get_memory_store

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


def _utc_iso_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def mcp_client_config(url: str) -> Dict[str, Any]:
    """Snippet users paste into their LLM client's MCP configuration."""
    return {"mcpServers": {"wikimem": {"transport": {"type": "http", "url": url}}}}


# Builds the FastMCP session manager, which the lifespan below drives.
mcp_http_app = mcp.streamable_http_app()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Wikimem API starting...")
    try:
        store = get_memory_store()
        logger.info("Memories directory: %s", store.base_dir)
    except MemoryStoreError as e:
        logger.error("Failed to initialize memory store: %s", e)
        raise RuntimeError("Failed to initialize memory store during startup") from e

    async with mcp.session_manager.run():
        yield

    logger.info("Wikimem API stopped.")
    close_memory_store()


app = FastAPI(
    title="Wikimem API",
    description="Local Markdown memories shared by the desktop app and MCP agents",
    version=APP_VERSION,
    lifespan=lifespan,
)

# The desktop webview loads from its own origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(memories_router)
app.include_router(search_router)
app.include_router(events_router)


@app.get("/")
async def root():
    settings = load_settings()
    return {
        "message": "Wikimem API",
        "version": APP_VERSION,
        "docs": "/docs",
        "mcp": mcp_client_config(settings.mcp_url),
    }


@app.get("/health")
async def health():
    payload: Dict[str, Any] = {
        "status": "ok",
        "timestamp": _utc_iso_now(),
        "subscribers": runtime_state.notifier.subscriber_count,
    }
    try:
        payload["memories_dir"] = str(get_memory_store().base_dir)
    except MemoryStoreError as e:
        payload["status"] = "degraded"
        payload["reason"] = str(e)
    return payload


# Mounted last so the API routes above take precedence; serves /mcp.
app.mount("/", mcp_http_app)
