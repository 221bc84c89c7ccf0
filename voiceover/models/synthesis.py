"""Request/response shapes exchanged with the TTS and LLM collaborators."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

NARRATOR = "narrator"


class SpeakerTurn(BaseModel):
    """A span of text read by one speaker."""

    speaker: str = Field(min_length=1)
    text: str = Field(min_length=1)

    @field_validator("text")
    @classmethod
    def text_not_whitespace(cls, v: str) -> str:
        """Validate that text is not only whitespace."""
        if not v.strip():
            raise ValueError("text cannot be only whitespace")
        return v


class VoiceConfig(BaseModel):
    """Maps a speaker alias used in turns to a provider voice."""

    speaker_alias: str = Field(min_length=1)
    voice_id: str = Field(min_length=1)


class SynthesisResult(BaseModel):
    """Audio produced by a TTS provider."""

    audio_content: bytes
    encoding: str = "LINEAR16"
    mime_type: str = "audio/wav"


class PreprocessResult(BaseModel):
    """Structured output of the LLM annotation pass."""

    annotated_text: str = Field(
        min_length=1,
        description="The input text with inline delivery cues for the narrator",
    )
    title: Optional[str] = Field(
        default=None,
        max_length=255,
        description="A short title for the voiceover, only when one was requested",
    )
