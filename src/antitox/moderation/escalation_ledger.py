"""
EscalationLedger: sanction history, repeat-offender escalation and counters.

The ledger is owned by the moderation service and mutated only by the
analysis worker. Readers (status, daily reports) receive copies.

Escalation rule, evaluated over a trailing window:
    mutes >= mute_threshold  -> BAN
    warns >= warn_threshold  -> MUTE
Only the classifier's own verdicts count towards these thresholds; an
escalated MUTE does not itself count as a MUTE.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field, replace
from typing import Callable, Deque, Dict, Iterable, List, Tuple

from antitox.datatypes.action_datatypes import ActionKind, Sanction
from antitox.util.logger import get_logger

logger = get_logger("escalation_ledger")

DAY_SECONDS = 86400.0


@dataclass(frozen=True, slots=True)
class SanctionRecord:
    """One entry of the sanction history.

    ``action`` is what the classifier decided; ``applied_action`` is what was
    dispatched after escalation (equal unless the player was escalated).
    """

    player: str
    action: ActionKind
    applied_action: ActionKind
    reason: str
    trigger_text: str
    timestamp: float
    cycle_id: int = 0


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """Point-in-time view of the ledger used by the daily report."""

    total_sanctions: int
    messages_analyzed: int
    cycles: int
    false_positives: int
    sanctions_last_24h: int
    by_action: Dict[ActionKind, int] = field(default_factory=dict)
    top_players: List[Tuple[str, int]] = field(default_factory=list)


class EscalationLedger:
    """
    Per-player sanction history with windowed escalation checks.

    Args:
        warn_threshold: WARN count within the window that escalates to MUTE.
        mute_threshold: MUTE count within the window that escalates to BAN.
        window_seconds: Length of the trailing escalation window.
        clock: Epoch-seconds time source; injectable for tests.
    """

    def __init__(
        self,
        warn_threshold: int = 3,
        mute_threshold: int = 2,
        window_seconds: float = 7 * DAY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if warn_threshold < 1 or mute_threshold < 1:
            raise ValueError("Escalation thresholds must be at least 1")
        if window_seconds <= 0:
            raise ValueError("Escalation window must be positive")

        self.warn_threshold = warn_threshold
        self.mute_threshold = mute_threshold
        self.window_seconds = window_seconds
        self._clock = clock

        self._history: List[SanctionRecord] = []
        self._windows: Dict[str, Deque[Tuple[ActionKind, float]]] = {}
        self._lock = threading.Lock()

        self._messages_analyzed = 0
        self._cycles = 0
        self._false_positives = 0

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_sanction(self, sanction: Sanction) -> SanctionRecord:
        """Append the sanction to the player's history, stamped with the current time."""
        record = SanctionRecord(
            player=sanction.player,
            action=sanction.original_action,
            applied_action=sanction.action,
            reason=sanction.reason,
            trigger_text=sanction.trigger_text,
            timestamp=self._clock(),
            cycle_id=sanction.cycle_id,
        )
        self._append(record)
        return record

    def record_escalation(self, sanction: Sanction) -> SanctionRecord | None:
        """Update the player's record from ``sanction.cycle_id`` with the escalated action."""
        key = sanction.player.casefold()
        with self._lock:
            for index in range(len(self._history) - 1, -1, -1):
                record = self._history[index]
                if record.cycle_id == sanction.cycle_id and record.player.casefold() == key:
                    updated = replace(record, applied_action=sanction.action, reason=sanction.reason)
                    self._history[index] = updated
                    return updated
        logger.warning("[LEDGER] No record for %s in cycle %d to escalate", sanction.player, sanction.cycle_id)
        return None

    def restore(self, records: Iterable[SanctionRecord]) -> int:
        """Load previously persisted records (oldest first) and return how many were loaded."""
        count = 0
        for record in sorted(records, key=lambda r: r.timestamp):
            self._append(record)
            count += 1
        if count:
            logger.info("[LEDGER] Restored %d sanction records", count)
        return count

    def _append(self, record: SanctionRecord) -> None:
        with self._lock:
            self._history.append(record)
            window = self._windows.setdefault(record.player.casefold(), deque())
            window.append((record.action, record.timestamp))

    # ------------------------------------------------------------------
    # Escalation
    # ------------------------------------------------------------------

    def check_escalation(self, player: str) -> ActionKind | None:
        """Return BAN/MUTE when the player's recent history warrants escalation, else None."""
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            window = self._windows.get(player.casefold())
            if not window:
                return None
            while window and window[0][1] < cutoff:
                window.popleft()
            counts = Counter(kind for kind, _ in window)

        warns = counts[ActionKind.WARN]
        mutes = counts[ActionKind.MUTE]
        if mutes >= self.mute_threshold:
            logger.warning("[LEDGER] Escalation: %s has %d mutes in window -> BAN", player, mutes)
            return ActionKind.BAN
        if warns >= self.warn_threshold:
            logger.warning("[LEDGER] Escalation: %s has %d warns in window -> MUTE", player, warns)
            return ActionKind.MUTE
        return None

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def record_cycle(self, messages_analyzed: int) -> None:
        with self._lock:
            self._messages_analyzed += messages_analyzed
            self._cycles += 1

    def report_false_positive(self) -> int:
        with self._lock:
            self._false_positives += 1
            return self._false_positives

    def now(self) -> float:
        return self._clock()

    @property
    def messages_analyzed(self) -> int:
        return self._messages_analyzed

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def false_positives(self) -> int:
        return self._false_positives

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def history(self) -> List[SanctionRecord]:
        with self._lock:
            return list(self._history)

    @property
    def total_sanctions(self) -> int:
        with self._lock:
            return len(self._history)

    def sanctions_by_action(self) -> Dict[ActionKind, int]:
        """Counts per action, in order of first occurrence.

        Escalated sanctions count under the action that was dispatched
        (``applied_action``), not the one the classifier asked for.
        """
        counts: Dict[ActionKind, int] = {}
        for record in self.history():
            counts[record.applied_action] = counts.get(record.applied_action, 0) + 1
        return counts

    def top_sanctioned_players(self, limit: int) -> List[Tuple[str, int]]:
        """Players with the most sanctions, highest first; ties keep first-seen order."""
        names: Dict[str, str] = {}
        counts: Dict[str, int] = {}
        for record in self.history():
            key = record.player.casefold()
            names.setdefault(key, record.player)
            counts[key] = counts.get(key, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [(names[key], count) for key, count in ranked[:max(limit, 0)]]

    def sanctions_since(self, seconds: float) -> List[SanctionRecord]:
        cutoff = self._clock() - seconds
        return [record for record in self.history() if record.timestamp >= cutoff]

    def snapshot(self, top_limit: int = 5) -> LedgerSnapshot:
        return LedgerSnapshot(
            total_sanctions=self.total_sanctions,
            messages_analyzed=self.messages_analyzed,
            cycles=self.cycles,
            false_positives=self.false_positives,
            sanctions_last_24h=len(self.sanctions_since(DAY_SECONDS)),
            by_action=self.sanctions_by_action(),
            top_players=self.top_sanctioned_players(top_limit),
        )
