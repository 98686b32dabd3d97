"""
MessageStore: append-only chat buffer with a monotonic consumption cursor.

Messages are appended by any number of producers and read by the single
analysis worker. Everything with ``arrival_time > cursor`` is pending; the
cursor only moves forward, and only after a classification round succeeded.

Usage:
    store = MessageStore()
    store.store("Alice", "hello")
    batch = store.snapshot_for_analysis()
    ...  # classify
    store.mark_consumed(batch.boundary)
"""

from __future__ import annotations

import threading
import time
from collections import defaultdict
from typing import Callable, Dict, Iterable, List

from antitox.datatypes.message_datatypes import ChatMessage, PendingBatch
from antitox.util.logger import get_logger

logger = get_logger("message_store")

# Spacing applied when the clock has not advanced since the previous append
_ARRIVAL_EPSILON = 1e-6


class MessageStore:
    """
    Thread-safe message buffer.

    The lock is held only for the append itself or for copying the list, so a
    producer never waits on classification and a returned snapshot is a private
    copy that later appends cannot change.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._messages: List[ChatMessage] = []
        self._lock = threading.Lock()
        self._cursor: float = 0.0
        self._last_arrival: float = 0.0

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def store(self, author: str, text: str) -> ChatMessage:
        """Append a message stamped with the current time and return it."""
        with self._lock:
            arrival = max(self._clock(), self._last_arrival + _ARRIVAL_EPSILON)
            message = ChatMessage(author=author, text=text, arrival_time=arrival)
            self._messages.append(message)
            self._last_arrival = arrival
            total = len(self._messages)
        logger.debug("[STORE] Stored message from %s (total=%d)", author, total)
        return message

    # ------------------------------------------------------------------
    # Analysis worker
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> float:
        return self._cursor

    def snapshot_for_analysis(self) -> PendingBatch:
        """
        Return every pending message grouped by author.

        Authors appear in order of their first pending message and each
        author's texts keep arrival order. Calling this repeatedly without an
        intervening :meth:`mark_consumed` returns equal batches.
        """
        with self._lock:
            since = self._cursor
            pending = [m for m in self._messages if m.arrival_time > since]

        grouped: Dict[str, List[str]] = {}
        for message in pending:
            grouped.setdefault(message.author, []).append(message.text)

        boundary = pending[-1].arrival_time if pending else since
        batch = PendingBatch(messages_by_author=grouped, boundary=boundary)
        logger.debug(
            "[STORE] Snapshot since=%.6f: %d pending messages from %d authors",
            since,
            batch.total_messages,
            batch.total_authors,
        )
        return batch

    def mark_consumed(self, up_to: float | None = None) -> float:
        """
        Advance the cursor and return its new value.

        Only call this after a confirmed, complete classification success.
        ``up_to`` should be the ``boundary`` of the batch that was classified;
        when omitted the cursor moves to the current time. The cursor never
        moves backwards.
        """
        target = self._clock() if up_to is None else up_to
        with self._lock:
            if target > self._cursor:
                self._cursor = target
            cursor = self._cursor
        logger.info("[STORE] Cursor advanced to %.6f; messages consumed.", cursor)
        return cursor

    def get_context(self, authors: Iterable[str], max_per_author: int) -> Dict[str, List[str]]:
        """
        Return up to ``max_per_author`` already-consumed messages per author.

        Matching is case-insensitive. The newest consumed messages are kept,
        oldest first. These are conversational context only and are never part
        of the sanctionable batch.
        """
        with self._lock:
            cursor = self._cursor
            consumed = [m for m in self._messages if m.arrival_time <= cursor]

        by_key: Dict[str, List[str]] = defaultdict(list)
        for message in consumed:
            by_key[message.author.casefold()].append(message.text)

        context: Dict[str, List[str]] = {}
        for author in authors:
            texts = by_key.get(author.casefold(), [])
            context[author] = texts[-max_per_author:] if max_per_author > 0 else []
        return context

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def purge_older_than(self, max_age: float, *, protect_pending: bool = True) -> int:
        """
        Remove messages older than ``max_age`` seconds and return how many went.

        With ``protect_pending`` (the default) the horizon is measured from the
        cursor instead of the current time, so pending messages are never
        purged. With ``protect_pending=False`` the purge is purely by age and
        can discard messages that were never classified if the backlog is older
        than the retention window.
        """
        now = self._clock()
        with self._lock:
            reference = min(now, self._cursor) if protect_pending else now
            cutoff = reference - max_age
            before = len(self._messages)
            self._messages = [m for m in self._messages if m.arrival_time >= cutoff]
            removed = before - len(self._messages)
            remaining = len(self._messages)
        if removed:
            logger.info("[STORE] Purged %d old messages. Remaining: %d", removed, remaining)
        return removed

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def author_count(self) -> int:
        with self._lock:
            return len({m.author for m in self._messages})

    def pending_count(self) -> int:
        with self._lock:
            cursor = self._cursor
            return sum(1 for m in self._messages if m.arrival_time > cursor)
