"""Guide-generation pipeline: extract -> sanitize -> build request -> generate -> parse -> store."""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from .errors import ExtractionError, TransportError
from .extract_utils import MAX_UPLOAD_BYTES, check_upload, extract_slides, title_from_filename
from .guide_store import GuideSession
from .llm import GenerationBackend
from .logging_utils import get_logger
from .models import Deck, SlideGuide, SlideText
from .pipeline_parse import parse_guides
from .pipeline_request import GuideRequest, build_guide_request
from .pipeline_sanitize import SanitizedInput, sanitize_inputs

logger = get_logger()


@dataclass
class RunConfig:
    retries: int = 0
    retry_backoff: float = 2.0
    max_retry_wait: float = 60.0
    max_upload_bytes: int = MAX_UPLOAD_BYTES


class Pipeline:
    def __init__(self, cfg: RunConfig, llm: GenerationBackend, session: Optional[GuideSession] = None) -> None:
        """Initialize.

        Args:
            cfg (RunConfig):
            llm (GenerationBackend):
            session (Optional[GuideSession]):

        Returns:
            None:
        """
        self.cfg = cfg
        self.llm = llm
        self.session = session or GuideSession()
        self._sleep = time.sleep

    def _generate_with_retry(self, request: GuideRequest) -> str:
        """Call the backend, retrying retryable transport errors per RunConfig.

        The backend itself never retries; this is the caller-side policy.
        """
        attempts = max(0, self.cfg.retries) + 1
        delay = self.cfg.retry_backoff
        attempt = 1
        while True:
            try:
                return self.llm.generate(request)
            except TransportError as exc:
                if not exc.retryable or attempt >= attempts:
                    raise
                wait = min(getattr(exc, "retry_after", None) or delay, self.cfg.max_retry_wait)
                logger.warning(
                    "Generation attempt %d/%d failed (%s); retrying in %.1fs",
                    attempt, attempts, type(exc).__name__, wait,
                )
                self._sleep(wait)
                delay *= 2
                attempt += 1

    def _guides_for(self, clean: SanitizedInput) -> List[SlideGuide]:
        logger.info("Generating guides for %d slides from deck: %s", clean.slide_count, clean.title)
        request = build_guide_request(clean.title, clean.slide_texts)
        raw = self._generate_with_retry(request)
        return parse_guides(raw, clean.slide_count)

    def generate_guides(self, deck_title: Any, slide_texts: Any) -> List[SlideGuide]:
        """Run sanitize -> request -> generate -> parse for one deck.

        Args:
            deck_title (Any):
            slide_texts (Any):

        Returns:
            List[SlideGuide]:
        """
        return self._guides_for(sanitize_inputs(deck_title, slide_texts))

    def generate_deck(self, deck_title: Any, slide_texts: Any) -> Optional[Deck]:
        """Generate guides and store them as the session's deck.

        Returns None when the generation was abandoned while in flight. On any
        error the store keeps its previous deck.
        """
        clean = sanitize_inputs(deck_title, slide_texts)
        ticket = self.session.begin()
        try:
            deck = Deck.create(clean.title, self._guides_for(clean))
        except BaseException:
            self.session.fail(ticket)
            raise
        if not self.session.complete(ticket, deck):
            return None
        logger.info("Successfully generated %d guides", deck.slide_count)
        return deck

    def extract(self, data: bytes, filename: str, content_type: Optional[str] = None) -> List[SlideText]:
        kind = check_upload(filename, len(data), content_type, max_bytes=self.cfg.max_upload_bytes)
        slides = extract_slides(data, kind)
        logger.info("Extracted %d slides from %s", len(slides), filename)
        return slides

    def run_upload(
        self,
        data: bytes,
        filename: str,
        title: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Optional[Deck]:
        """Extract an uploaded document and generate its deck.

        Args:
            data (bytes):
            filename (str):
            title (Optional[str]):
            content_type (Optional[str]):

        Returns:
            Optional[Deck]:
        """
        slides = self.extract(data, filename, content_type)
        deck_title = (title or "").strip() or title_from_filename(filename) or "Untitled deck"
        return self.generate_deck(deck_title, [s.raw_text for s in slides])

    def run_file(self, path: Path, title: Optional[str] = None) -> Optional[Deck]:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ExtractionError(f"Could not read {path.name}: {exc.strerror or exc}") from exc
        return self.run_upload(data, path.name, title=title)
