"""FastAPI application entry point for the AI Salesman Assistant."""

import logging
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from salesbot import __version__
from salesbot.api.catalog import create_catalog_router
from salesbot.catalog.store import SQLiteCatalogStore
from salesbot.core.config import get_settings
from salesbot.core.errors import unhandled_exception_handler
from salesbot.core.logging import configure_logging, request_id_middleware
from salesbot.core.metrics import MetricsCollector
from salesbot.engine import build_engine, build_provider
from salesbot.memory.models import ChatMessage, TurnRequest
from salesbot.memory.store import create_ttl_store

settings = get_settings()
logger = logging.getLogger("salesbot.app")

MAX_MESSAGE_LENGTH = 2000

catalog = SQLiteCatalogStore(settings.catalog_db_path)
cache = create_ttl_store(settings.redis_url)
provider = build_provider(settings)
metrics = MetricsCollector()
engine = build_engine(settings, catalog=catalog, cache=cache, provider=provider, metrics=metrics)

app = FastAPI(title=settings.app_name, version=__version__, docs_url="/docs")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_id_middleware)

app.include_router(create_catalog_router(catalog))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Return basic service status for monitoring."""

    return {"status": "ok"}


@app.get("/ready", tags=["health"])
async def readiness_probe() -> dict[str, Any]:
    """Readiness endpoint that verifies critical dependencies.

    Checks:
    - Catalog SQLite DB reachable and has the products table.
    - TTL cache responds to ping.
    - Completion provider has credentials (reported, not required).
    """

    components: dict[str, dict[str, Any]] = {}

    catalog_ok = False
    catalog_error: str | None = None
    try:
        catalog_ok = catalog.ping()
    except Exception as exc:  # noqa: BLE001
        catalog_error = str(exc)
    components["catalog_db"] = {
        "path": str(settings.catalog_db_path),
        "ok": catalog_ok,
        **({"error": catalog_error} if catalog_error else {}),
    }

    cache_ok = False
    cache_error: str | None = None
    try:
        cache_ok = await cache.ping()
    except Exception as exc:  # noqa: BLE001
        cache_error = str(exc)
    components["cache"] = {
        "backend": type(cache).__name__,
        "ok": cache_ok,
        **({"error": cache_error} if cache_error else {}),
    }

    components["llm"] = {
        "model": settings.llm_model,
        "native_functions": settings.native_functions,
        "ok": settings.llm_enabled,
    }

    if catalog_ok and cache_ok and settings.llm_enabled:
        overall = "ok"
    elif catalog_ok:
        overall = "degraded"
    else:
        overall = "fail"

    return {
        "status": overall,
        "environment": settings.environment,
        "components": components,
    }


@app.post("/chat", tags=["chat"])
async def chat(message: dict) -> dict:
    """Primary chat endpoint running one conversational turn."""

    content = message.get("message")
    site_id = message.get("site_id")

    if not isinstance(content, str) or not content.strip() or not isinstance(site_id, str) or not site_id.strip():
        raise HTTPException(status_code=400, detail="message and site_id are required")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise HTTPException(status_code=400, detail=f"message must be at most {MAX_MESSAGE_LENGTH} characters")

    session_id = message.get("session_id") or str(uuid.uuid4())
    raw_history = message.get("previous_messages") or []
    if not isinstance(raw_history, list):
        raise HTTPException(status_code=400, detail="previous_messages must be a list")

    request = TurnRequest(
        session_id=str(session_id),
        site_id=site_id.strip(),
        message=content.strip(),
        user_id=message.get("user_id"),
        previous_messages=[ChatMessage.from_dict(item) for item in raw_history if isinstance(item, dict)],
    )
    response = await engine.process_message(request)
    return {"session_id": request.session_id, **response.to_dict()}


@app.on_event("startup")
async def on_startup() -> None:
    level = configure_logging(settings.log_level)
    logger.info("Logging configured at %s level for %s environment", logging.getLevelName(level), settings.environment)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await engine.drain()
    await provider.close()
    await cache.close()


app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get("/metrics", tags=["metrics"])
async def metrics_endpoint() -> dict:
    snapshot = metrics.snapshot()
    return {
        "total_turns": snapshot.total_turns,
        "fallback_turns": snapshot.fallback_turns,
        "token_usage": snapshot.token_usage,
        "intents": snapshot.intents,
        "actions": snapshot.actions,
    }
