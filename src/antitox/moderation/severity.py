"""Per-cycle deduplication of classifier verdicts by severity."""

from __future__ import annotations

from typing import Dict, Iterable, List

from antitox.datatypes.action_datatypes import Verdict


def resolve_most_severe(verdicts: Iterable[Verdict]) -> List[Verdict]:
    """
    Keep only the most severe verdict per player.

    Players are compared case-insensitively. On equal severity the verdict seen
    first wins, and the output lists players in the order they first appeared:
    ``[A:WARN, a:BAN, B:KICK]`` resolves to ``[a:BAN, B:KICK]``.
    """
    best: Dict[str, Verdict] = {}
    for verdict in verdicts:
        key = verdict.subject_key
        current = best.get(key)
        if current is None or verdict.action.outranks(current.action):
            best[key] = verdict
    return list(best.values())
