"""Prompt configurations for language-model passes."""

from voiceover.agents.annotator import (
    ANNOTATION_TEMPERATURE,
    ANNOTATOR_SYSTEM_PROMPT,
    annotation_max_tokens,
    build_annotator_prompt,
)

__all__ = [
    "ANNOTATOR_SYSTEM_PROMPT",
    "ANNOTATION_TEMPERATURE",
    "annotation_max_tokens",
    "build_annotator_prompt",
]
