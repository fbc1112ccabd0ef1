from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, List, Tuple

from .errors import EmptyInputError, TooManySlidesError

MAX_TITLE_CHARS = 200
MAX_SLIDE_CHARS = 5000
MAX_SLIDES = 100


@dataclass(frozen=True)
class SanitizedInput:
    title: str
    slide_texts: Tuple[str, ...]

    @property
    def slide_count(self) -> int:
        return len(self.slide_texts)


def _drop_controls(text: str, keep: str = "") -> str:
    return "".join(ch for ch in text if ch in keep or unicodedata.category(ch) != "Cc")


def clean_title(title: Any) -> str:
    """Strip control characters and bound the deck title.

    Args:
        title (Any):

    Returns:
        str:
    """
    if not isinstance(title, str):
        raise EmptyInputError("deckTitle must be a non-empty string.")
    t = title.replace("\r\n", " ").replace("\r", " ").replace("\n", " ").replace("\t", " ")
    t = _drop_controls(t)[:MAX_TITLE_CHARS].strip()
    if not t:
        raise EmptyInputError("deckTitle must be a non-empty string.")
    return t


def clean_slide_text(text: Any) -> str:
    """Strip control characters (keeping newlines and tabs) and bound one slide's text.

    Args:
        text (Any):

    Returns:
        str:
    """
    if not isinstance(text, str):
        return ""
    t = text.replace("\r\n", "\n").replace("\r", "\n")
    return _drop_controls(t, keep="\n\t")[:MAX_SLIDE_CHARS].strip()


def sanitize_inputs(deck_title: Any, slide_texts: Any) -> SanitizedInput:
    """Validate and normalize a (title, slide texts) pair before prompting.

    Applying it to its own output returns the same pair.
    """
    title = clean_title(deck_title)
    if not isinstance(slide_texts, (list, tuple)) or not slide_texts:
        raise EmptyInputError("slideTexts must be a non-empty array.")
    if len(slide_texts) > MAX_SLIDES:
        raise TooManySlidesError(len(slide_texts), MAX_SLIDES)
    cleaned: List[str] = [clean_slide_text(t) for t in slide_texts]
    return SanitizedInput(title=title, slide_texts=tuple(cleaned))
