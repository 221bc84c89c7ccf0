"""HTTP API for Voiceover Studio."""

from voiceover.api.routes import router

__all__ = ["router"]
