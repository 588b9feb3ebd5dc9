from __future__ import annotations

import logging
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


from api.routes import router as api_router


def _parse_origins(raw: str) -> List[str]:
    # Accept comma-separated list. Ignore empties.
    return [o.strip() for o in (raw or "").split(",") if o.strip()]


def _validate_origins(origins: List[str]) -> List[str]:
    # Credentials are allowed, so a wildcard origin is not.
    if "*" in origins:
        raise ValueError("CORS_ALLOW_ORIGINS must list explicit origins, not '*'")
    return origins


def create_app() -> FastAPI:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    app = FastAPI(title="Direct Store Pricing API", version="0.1.0")

    origins = _validate_origins(_parse_origins(os.getenv("CORS_ALLOW_ORIGINS", "")))
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
