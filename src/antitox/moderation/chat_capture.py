"""
ChatCapture: the single ingestion callback exposed to chat sources.

Hosts often deliver the same chat line through more than one event path.
Identical (author, text) pairs seen again within a short window are dropped
before they reach the :class:`MessageStore`.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Tuple

from antitox.moderation.message_store import MessageStore
from antitox.util.logger import get_logger

logger = get_logger("chat_capture")

DEFAULT_DEDUP_WINDOW_SECONDS = 0.5
EVICTION_THRESHOLD = 1000

BypassPredicate = Callable[[str], bool]


class ChatCapture:
    """
    Deduplicating front-end for :meth:`MessageStore.store`.

    Args:
        store: Destination buffer.
        dedup_window: Seconds during which a repeated (author, text) pair is ignored.
        bypass: Optional predicate; authors for which it returns True are never captured.
        clock: Time source in seconds; injectable for tests.
    """

    def __init__(
        self,
        store: MessageStore,
        dedup_window: float = DEFAULT_DEDUP_WINDOW_SECONDS,
        bypass: BypassPredicate | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._window = dedup_window
        self._bypass = bypass
        self._clock = clock
        self._recent: Dict[Tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def capture(self, author: str, text: str, source: str = "chat") -> bool:
        """Store the message unless bypassed or a recent duplicate. Returns True when stored."""
        if self._bypass is not None and self._bypass(author):
            return False

        key = (author, text)
        now = self._clock()
        with self._lock:
            last = self._recent.get(key)
            if last is not None and now - last < self._window:
                logger.debug("[CAPTURE] Dropped duplicate from %s via %s", author, source)
                return False
            self._recent[key] = now
            if len(self._recent) > EVICTION_THRESHOLD:
                self._evict(now)

        self._store.store(author, text)
        logger.info("[%s] Captured from %s: %s", source.upper(), author, text)
        return True

    def _evict(self, now: float) -> None:
        horizon = self._window * 2
        stale = [key for key, seen in self._recent.items() if now - seen > horizon]
        for key in stale:
            del self._recent[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._recent)
