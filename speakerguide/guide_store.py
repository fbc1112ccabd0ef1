"""Session-scoped holder for the current deck and its single in-flight generation."""
from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import List, Optional

from .errors import GenerationInProgressError
from .logging_utils import get_logger
from .models import Deck, SlideGuide

logger = get_logger("store")


class GuideStore:
    """Holds at most one Deck. Only whole-deck replacement is supported."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._deck: Optional[Deck] = None

    def replace(self, deck: Deck) -> None:
        with self._lock:
            self._deck = deck

    def current(self) -> Optional[Deck]:
        with self._lock:
            return self._deck

    def guides(self) -> List[SlideGuide]:
        deck = self.current()
        return list(deck.guides) if deck is not None else []

    def clear(self) -> None:
        with self._lock:
            self._deck = None


@dataclass(frozen=True)
class GenerationTicket:
    number: int


class GuideSession:
    """Single-writer lifecycle around one GuideStore.

    Only the holder of the current ticket may write the store; a ticket made
    stale by abandon() has its result dropped.
    """

    def __init__(self, store: Optional[GuideStore] = None) -> None:
        self.store = store or GuideStore()
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._inflight: Optional[GenerationTicket] = None

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._inflight is not None

    def begin(self) -> GenerationTicket:
        with self._lock:
            if self._inflight is not None:
                raise GenerationInProgressError()
            self._inflight = GenerationTicket(next(self._counter))
            logger.debug("Generation %d started", self._inflight.number)
            return self._inflight

    def complete(self, ticket: GenerationTicket, deck: Deck) -> bool:
        with self._lock:
            if self._inflight != ticket:
                logger.info("Discarding result of abandoned generation %d", ticket.number)
                return False
            self._inflight = None
            self.store.replace(deck)
        logger.debug("Generation %d stored deck %s (%d slides)", ticket.number, deck.id, deck.slide_count)
        return True

    def fail(self, ticket: GenerationTicket) -> None:
        with self._lock:
            if self._inflight == ticket:
                self._inflight = None

    def abandon(self) -> None:
        """Drop any in-flight generation and the current deck."""
        with self._lock:
            if self._inflight is not None:
                logger.info("Abandoning in-flight generation %d", self._inflight.number)
            self._inflight = None
            self.store.clear()
