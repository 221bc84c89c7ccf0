"""Text-to-speech collaborator: protocol and ElevenLabs implementation."""

import io
import logging
import wave
from typing import Any, Dict, List, Optional, Protocol

from voiceover.models.synthesis import SpeakerTurn, SynthesisResult, VoiceConfig
from voiceover.utils.errors import ElevenLabsAPIError, TTSError
from voiceover.utils.retry import with_retry

logger = logging.getLogger(__name__)

# pcm_24000: signed 16-bit little-endian mono at 24 kHz
SAMPLE_RATE = 24000
SAMPLE_WIDTH = 2
CHANNELS = 1
PCM_OUTPUT_FORMAT = "pcm_24000"


class TextToSpeech(Protocol):
    """Anything that can turn speaker turns into audio bytes."""

    async def synthesize(
        self, turns: List[SpeakerTurn], voice_configs: List[VoiceConfig]
    ) -> SynthesisResult:
        """Raises TTSError with a human-readable message on failure."""
        ...


def pcm_to_wav(pcm: bytes) -> bytes:
    """Wrap raw 24 kHz 16-bit mono PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(CHANNELS)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(pcm)
    return buffer.getvalue()


class ElevenLabsTTS:
    """Synthesizes speaker turns with ElevenLabs and returns a single WAV file."""

    def __init__(
        self,
        elevenlabs_api_key: str,
        model_id: str = "eleven_multilingual_v2",
        voice_map: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Initialize the ElevenLabsTTS.

        Args:
            elevenlabs_api_key: API key for ElevenLabs service
            model_id: ElevenLabs model ID
            voice_map: Optional mapping from voice names (e.g. "Charon") to
                ElevenLabs voice IDs; unmapped names are sent as-is
        """
        self.api_key = elevenlabs_api_key
        self.model_id = model_id
        self.voice_map = voice_map or {}
        self._client: Optional[Any] = None

    async def _get_client(self) -> Any:
        """Get or create the ElevenLabs async client."""
        if self._client is None:
            from elevenlabs import AsyncElevenLabs

            self._client = AsyncElevenLabs(api_key=self.api_key)
        return self._client

    def resolve_voice(self, voice: str) -> str:
        return self.voice_map.get(voice, voice)

    @with_retry(max_attempts=3, base_delay=1.0, exceptions=(ElevenLabsAPIError,))
    async def _convert(self, voice_id: str, text: str) -> bytes:
        """Convert one turn to raw PCM."""
        client = await self._get_client()

        try:
            audio_stream = client.text_to_speech.convert(
                voice_id=voice_id,
                text=text,
                model_id=self.model_id,
                output_format=PCM_OUTPUT_FORMAT,
            )

            chunks: List[bytes] = []
            async for chunk in audio_stream:
                chunks.append(chunk)
            return b"".join(chunks)

        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if status_code is not None:
                raise ElevenLabsAPIError(status_code, str(getattr(e, "body", e)))
            raise TTSError(f"Audio synthesis failed: {e}")

    async def synthesize(
        self, turns: List[SpeakerTurn], voice_configs: List[VoiceConfig]
    ) -> SynthesisResult:
        """
        Synthesize all turns in order and join them into one WAV file.

        Args:
            turns: Speaker turns to read
            voice_configs: Voice for each speaker alias used in ``turns``

        Returns:
            SynthesisResult with WAV bytes

        Raises:
            TTSError: If a speaker has no voice or synthesis fails
        """
        if not turns:
            raise TTSError("Nothing to synthesize")

        voices = {config.speaker_alias: config.voice_id for config in voice_configs}
        segments: List[bytes] = []

        for idx, turn in enumerate(turns):
            voice = voices.get(turn.speaker)
            if not voice:
                raise TTSError(f"No voice configured for speaker: {turn.speaker}")

            logger.debug(f"Synthesizing turn {idx + 1}/{len(turns)} with voice {voice}")
            segments.append(await self._convert(self.resolve_voice(voice), turn.text))

        pcm = b"".join(segments)
        if not pcm:
            raise TTSError("No audio data generated")

        return SynthesisResult(audio_content=pcm_to_wav(pcm), encoding="LINEAR16", mime_type="audio/wav")


def create_tts_service() -> ElevenLabsTTS:
    """
    Create an ElevenLabsTTS instance using application settings.

    Returns:
        Configured ElevenLabsTTS instance
    """
    from voiceover.config import get_settings

    settings = get_settings()
    return ElevenLabsTTS(
        elevenlabs_api_key=settings.elevenlabs_api_key,
        model_id=settings.elevenlabs_model,
        voice_map=settings.elevenlabs_voice_map,
    )
