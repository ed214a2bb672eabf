"""
Study Aid API

FastAPI application hosting the document processing function.

Usage:
    uvicorn studyaid.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyaid import __version__
from studyaid.config import Settings, settings as default_settings
from studyaid.middleware import setup_error_handling
from studyaid.routers import health, processing


def create_app(settings: Settings = default_settings) -> FastAPI:
    """Build the FastAPI app with logging, CORS and error handling configured."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=f"{settings.APP_NAME} API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    setup_error_handling(app, debug=settings.DEBUG)

    app.include_router(health.router)
    app.include_router(processing.router)
    return app


app = create_app()
