from __future__ import annotations

import logging
import time
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

from harvardplate.shared.config.settings import Settings, settings as default_settings
from harvardplate.shared.logging.logger import setup_logging
from harvardplate.shared.llm.openai_client import LLMClient
from harvardplate.shared.persistence.mongo import create_client, ensure_indexes, get_database
from harvardplate.shared.api.errors import register_exception_handlers
from harvardplate.shared.api.rate_limit import FixedWindowRateLimiter, install_rate_limiter

from harvardplate.shared.api.health import router as health_router
from harvardplate.features.plates.api.routes import router as plates_router
from harvardplate.features.recipes.api.routes import router as recipes_router
from harvardplate.features.recipes.app.use_cases import RecipeGenerator
from harvardplate.features.users.api.routes import router as users_router

log = logging.getLogger("app")


def _csv(value: Optional[str]) -> List[str]:
    if value and value != "*":
        return [v.strip() for v in value.split(",") if v.strip()]
    return ["*"]


def create_app(
    cfg: Optional[Settings] = None,
    *,
    db: Optional[Database] = None,
    llm: Optional[LLMClient] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    setup_logging(cfg)
    app = FastAPI(title="Harvard Plate", version="1.0.0")

    mongo_client = None
    if db is None:
        mongo_client = create_client(cfg)
        db = get_database(mongo_client, cfg)
    if llm is None:
        llm = LLMClient.from_settings(cfg)

    app.state.settings = cfg
    app.state.mongo_client = mongo_client
    app.state.db = db
    app.state.llm = llm
    app.state.recipe_generator = RecipeGenerator.from_settings(llm, cfg)

    if cfg.RATE_LIMIT_ENABLED:
        install_rate_limiter(
            app,
            FixedWindowRateLimiter(cfg.RATE_LIMIT_MAX_REQUESTS, cfg.RATE_LIMIT_WINDOW_SECONDS),
        )

    request_log = logging.getLogger("api")

    @app.middleware("http")
    async def _log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        request_log.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.0f} ms)")
        return response

    # CORS (outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_csv(cfg.CORS_ALLOW_ORIGINS),
        allow_credentials=cfg.CORS_ALLOW_CREDENTIALS,
        allow_methods=_csv(cfg.CORS_ALLOW_METHODS),
        allow_headers=_csv(cfg.CORS_ALLOW_HEADERS),
    )

    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(recipes_router, prefix="/api")
    app.include_router(users_router,   prefix="/api")
    app.include_router(plates_router,  prefix="/api")

    @app.on_event("startup")
    async def _on_startup():
        try:
            ensure_indexes(app.state.db)
        except PyMongoError:
            log.warning("ensure_indexes failed; continuing without index check")
        log.info(f"Harvard Plate API ready (model={cfg.CHAT_MODEL}, format={cfg.RECIPE_RESPONSE_FORMAT})")

    @app.on_event("shutdown")
    async def _on_shutdown():
        await app.state.llm.aclose()
        if app.state.mongo_client is not None:
            app.state.mongo_client.close()

    return app


# Uvicorn/Gunicorn entry point
app = create_app()
