"""Voiceover Studio: text-to-speech generation lifecycle and collaborative approvals."""
