"""Tests for per-cycle verdict deduplication."""

from antitox.datatypes.action_datatypes import ActionKind, Verdict
from antitox.moderation.severity import resolve_most_severe


def verdict(player, action, reason="r"):
    return Verdict(player=player, action=action, reason=reason)


class TestResolveMostSevere:
    """Tests for resolve_most_severe."""

    def test_keeps_most_severe_per_player(self):
        """[A WARN, A BAN, B KICK] resolves to [A BAN, B KICK]."""
        result = resolve_most_severe([
            verdict("A", ActionKind.WARN),
            verdict("A", ActionKind.BAN),
            verdict("B", ActionKind.KICK),
        ])

        assert [(v.player, v.action) for v in result] == [("A", ActionKind.BAN), ("B", ActionKind.KICK)]

    def test_tie_keeps_first_encountered(self):
        result = resolve_most_severe([
            verdict("A", ActionKind.MUTE, "first"),
            verdict("A", ActionKind.MUTE, "second"),
        ])

        assert len(result) == 1
        assert result[0].reason == "first"

    def test_players_are_grouped_case_insensitively(self):
        result = resolve_most_severe([
            verdict("Steve", ActionKind.WARN),
            verdict("steve", ActionKind.KICK),
        ])

        assert len(result) == 1
        assert result[0].action is ActionKind.KICK

    def test_order_follows_first_appearance(self):
        """A later, more severe verdict does not move the player's position."""
        result = resolve_most_severe([
            verdict("B", ActionKind.WARN),
            verdict("A", ActionKind.WARN),
            verdict("B", ActionKind.IPBAN),
        ])

        assert [v.player for v in result] == ["B", "A"]
        assert result[0].action is ActionKind.IPBAN

    def test_empty_input(self):
        assert resolve_most_severe([]) == []


class TestActionKind:
    """Tests for the severity order and parsing of action kinds."""

    def test_total_order(self):
        kinds = [ActionKind.WARN, ActionKind.MUTE, ActionKind.KICK, ActionKind.BAN, ActionKind.IPBAN]
        assert [k.severity for k in kinds] == [1, 2, 3, 4, 5]
        assert ActionKind.BAN.outranks(ActionKind.KICK)
        assert not ActionKind.WARN.outranks(ActionKind.WARN)

    def test_parse(self):
        assert ActionKind.parse(" mute ") is ActionKind.MUTE
        assert ActionKind.parse("SHADOWBAN") is None
        assert ActionKind.parse(None) is None
