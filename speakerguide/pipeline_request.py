"""Prompt construction for speaker-guide generation."""
from __future__ import annotations

from dataclasses import dataclass
from textwrap import dedent
from typing import Dict, List, Sequence

SYSTEM_PROMPT = dedent(
    """
    You are an expert presentation coach. Your job is to analyze slide content and generate helpful speaker guides.

    For each slide, you must return a JSON object with exactly this structure:
    {
      "slideNumber": number,
      "title": "A concise title for the slide content",
      "keyTalkingPoints": ["3 specific, actionable talking points"],
      "transitionStatement": "A smooth transition phrase to the next slide",
      "emphasisTopic": "The main takeaway or key message to emphasize",
      "keywords": ["3-5 relevant keywords"],
      "stats": ["Any statistics mentioned, or empty array if none"],
      "speakerReminder": {
        "timing": "Suggested time like '90 seconds' or '2 minutes'",
        "energy": "High, Medium, or Low based on content"
      }
    }

    Be specific, practical, and help the speaker deliver the content with confidence.
    """
).strip()

EMPTY_SLIDE_PLACEHOLDER = "(Empty slide - suggest a title slide or transition)"

USER_PROMPT_TEMPLATE = dedent(
    """
    Analyze these {count} slides from the presentation "{title}" and generate speaker guides for each:

    {slides}

    Return a JSON array with exactly {count} guide objects, one per slide, in the same order as the slides above.
    The guide for "=== Slide N ===" must have "slideNumber": N.
    Respond ONLY with valid JSON, no markdown or explanation.
    """
).strip()


@dataclass(frozen=True)
class GuideRequest:
    system_prompt: str
    user_prompt: str
    slide_count: int

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


def format_slides(slide_texts: Sequence[str]) -> str:
    blocks = []
    for i, text in enumerate(slide_texts, 1):
        blocks.append(f"=== Slide {i} ===\n{text or EMPTY_SLIDE_PLACEHOLDER}")
    return "\n\n".join(blocks)


def build_guide_request(deck_title: str, slide_texts: Sequence[str]) -> GuideRequest:
    """Compose the system/user prompt pair for already-sanitized inputs."""
    user_prompt = USER_PROMPT_TEMPLATE.format(
        count=len(slide_texts),
        title=deck_title,
        slides=format_slides(slide_texts),
    )
    return GuideRequest(system_prompt=SYSTEM_PROMPT, user_prompt=user_prompt, slide_count=len(slide_texts))
