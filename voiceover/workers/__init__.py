"""Background workers for Voiceover Studio."""

from voiceover.workers.voiceover_worker import VoiceoverWorker, create_voiceover_worker

__all__ = ["VoiceoverWorker", "create_voiceover_worker"]
