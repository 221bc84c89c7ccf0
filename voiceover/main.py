"""Voiceover Studio API application."""

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from voiceover.api.routes import (
    generic_exception_handler,
    http_exception_handler,
    router,
    validation_exception_handler,
    voiceover_studio_exception_handler,
)
from voiceover.utils.errors import VoiceoverStudioError
from voiceover.utils.logging import configure_logging


def create_app() -> FastAPI:
    """Build the FastAPI application with routes and exception handlers."""
    configure_logging()

    app = FastAPI(title="Voiceover Studio API")
    app.include_router(router)

    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(VoiceoverStudioError, voiceover_studio_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("voiceover.main:app", host="0.0.0.0", port=3000, reload=True)
