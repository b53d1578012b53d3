from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import notifications, proposals
from .config import get_cors_origins, load_config
from .settings import settings
from .shared_runtime import UrbanRuntime

log = logging.getLogger(__name__)


def create_app(runtime: Optional[UrbanRuntime] = None, cfg: Optional[Dict[str, Any]] = None) -> FastAPI:
    cfg = cfg if cfg is not None else load_config(settings.CONFIG_ROOT)
    runtime = runtime or UrbanRuntime.from_config(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("urban node API starting (directory=%s)", type(runtime.directory).__name__)
        yield
        await runtime.aclose()

    app = FastAPI(title="UrbanFHE Plan Node API", lifespan=lifespan)
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(cfg),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(proposals.router)
    app.include_router(notifications.router)

    @app.get("/health")
    async def health():
        return {"ok": True, "directory_available": await runtime.directory.is_available()}

    return app
