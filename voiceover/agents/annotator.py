"""Narration annotator prompts.

The annotator adds light delivery cues to voiceover text before synthesis
and, when the voiceover still has a placeholder title, proposes one.
"""

import math

ANNOTATOR_SYSTEM_PROMPT = """
You prepare scripts for a single professional narrator.

TASK:
- Return the text with natural delivery cues inserted inline, e.g. [pause],
  [warmly], [emphasis], [slowly]
- Keep every word of the original text, in the original order
- Do not add commentary, headings or stage directions beyond inline cues
- Use cues sparingly: at most one per sentence, none on most sentences

TITLE:
- Only when asked, propose a short title (under 60 characters) that
  describes the content. Do not wrap it in quotes.
"""


def build_annotator_prompt(text: str, needs_title: bool) -> str:
    """Construct the user prompt for one annotation pass.

    Args:
        text: Trimmed voiceover text
        needs_title: Whether a title should be proposed

    Returns:
        Prompt string for the language model
    """
    title_instruction = (
        "Also propose a title for this voiceover."
        if needs_title
        else "Do not propose a title; leave it empty."
    )
    return f"{title_instruction}\n\nTEXT:\n{text}"


def annotation_max_tokens(text: str) -> int:
    """Output budget: the annotated text is slightly longer than the input."""
    return max(1024, math.ceil(len(text) * 1.5))


ANNOTATION_TEMPERATURE = 0.3
