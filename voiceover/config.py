"""Application settings from environment variables."""

from functools import lru_cache
from typing import Dict

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    # API Keys
    anthropic_api_key: str = ""
    elevenlabs_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "voiceovers"

    # Configuration
    log_level: str = "INFO"

    # ElevenLabs
    elevenlabs_model: str = "eleven_multilingual_v2"
    # Voice names stored on voiceovers -> ElevenLabs voice IDs (JSON in env)
    elevenlabs_voice_map: Dict[str, str] = {}

    # LLM preprocessing
    llm_model: str = "anthropic:claude-sonnet-4-20250514"

    # Synthesis output: WAV 24kHz 16-bit mono
    audio_bytes_per_second: int = 48000

    # Worker
    worker_poll_interval_seconds: float = 5.0
    worker_backoff_cap_seconds: float = 60.0
    worker_max_consecutive_errors: int = 5

    model_config = {"env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
