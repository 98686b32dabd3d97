"""
Action kinds, verdicts and sanctions.

A :class:`Verdict` is what the classifier returned for one player; a
:class:`Sanction` is the finalized action after per-cycle deduplication and
repeat-offender escalation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ActionKind(Enum):
    """Moderation actions, declared in ascending severity."""

    WARN = "WARN"
    MUTE = "MUTE"
    KICK = "KICK"
    BAN = "BAN"
    IPBAN = "IPBAN"

    def __str__(self) -> str:
        return self.value

    @property
    def severity(self) -> int:
        """Rank in the total order WARN < MUTE < KICK < BAN < IPBAN (1-based)."""
        return _SEVERITY[self]

    def outranks(self, other: ActionKind) -> bool:
        return self.severity > other.severity

    @classmethod
    def parse(cls, raw: object) -> ActionKind | None:
        """Return the kind named by ``raw`` (case-insensitive), or None if unknown."""
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return None


_SEVERITY = {kind: rank for rank, kind in enumerate(ActionKind, start=1)}


@dataclass(frozen=True, slots=True)
class Verdict:
    """Raw classifier output for one player, before dedup and escalation.

    Attributes:
        player: Player name as the classifier reported it.
        action: Requested action kind.
        reason: Short human-readable reason.
        trigger_text: The original (un-normalized) message that caused the verdict.
        duration: Duration token such as ``"1h"``/``"permanent"``, empty when unspecified.
    """

    player: str
    action: ActionKind
    reason: str
    trigger_text: str = "N/A"
    duration: str = ""

    @property
    def subject_key(self) -> str:
        """Case-insensitive identity used to group verdicts for the same player."""
        return self.player.casefold()


@dataclass(frozen=True, slots=True)
class Sanction:
    """A finalized moderation action for one player in one cycle.

    Attributes:
        player: Target player.
        action: Action to execute (possibly escalated).
        reason: Reason text; prefixed with ``Repeat offender:`` when escalated.
        trigger_text: Original message that caused the verdict.
        duration: Duration token passed to the command mapping.
        cycle_id: Identifier of the cycle that produced this sanction.
        original_action: Action the classifier asked for before escalation.
    """

    player: str
    action: ActionKind
    reason: str
    trigger_text: str
    duration: str
    cycle_id: int
    original_action: ActionKind

    @property
    def escalated(self) -> bool:
        return self.action is not self.original_action

    @classmethod
    def from_verdict(cls, verdict: Verdict, cycle_id: int) -> Sanction:
        return cls(
            player=verdict.player,
            action=verdict.action,
            reason=verdict.reason,
            trigger_text=verdict.trigger_text,
            duration=verdict.duration,
            cycle_id=cycle_id,
            original_action=verdict.action,
        )

    def to_wire_dict(self) -> dict:
        """Return a JSON-serializable dictionary representing this sanction."""
        return {
            "player": self.player,
            "action": self.action.value,
            "reason": self.reason,
            "trigger_message": self.trigger_text,
            "duration": self.duration,
            "cycle_id": self.cycle_id,
            "original_action": self.original_action.value,
        }
