"""FastAPI application factory for the OAuth playground API."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playground.api.routes_callback import router as callback_router
from playground.api.routes_log import router as log_router
from playground.api.routes_token import router as token_router
from playground.core.settings import PlaygroundSettings


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = PlaygroundSettings()
    logging.getLogger("playground").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="OAuth Playground API",
        version="0.1.0",
    )

    origins = settings.get_cors_origin_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type"],
        )

    app.include_router(token_router)
    app.include_router(log_router)
    app.include_router(callback_router)

    return app
