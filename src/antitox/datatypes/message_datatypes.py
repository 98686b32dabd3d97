"""Chat message and analysis-batch containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One captured chat line.

    Attributes:
        author: Player name as supplied by the chat source.
        text: Raw message text, never modified after capture.
        arrival_time: Epoch seconds assigned by the store; unique and strictly increasing.
    """

    author: str
    text: str
    arrival_time: float


@dataclass(frozen=True, slots=True)
class PendingBatch:
    """Snapshot of not-yet-consumed messages, grouped by author.

    ``boundary`` is the arrival time of the newest message in the snapshot.
    Passing it to ``MessageStore.mark_consumed`` consumes exactly these
    messages and nothing that arrived while the batch was being classified.
    """

    messages_by_author: Dict[str, List[str]] = field(default_factory=dict)
    boundary: float = 0.0

    def is_empty(self) -> bool:
        return not self.messages_by_author

    @property
    def total_messages(self) -> int:
        return sum(len(texts) for texts in self.messages_by_author.values())

    @property
    def total_authors(self) -> int:
        return len(self.messages_by_author)
