"""Tests for the sanction ledger and repeat-offender escalation."""

import pytest

from antitox.datatypes.action_datatypes import ActionKind, Sanction
from antitox.moderation.escalation_ledger import DAY_SECONDS, EscalationLedger, SanctionRecord


def sanction(player, action, cycle_id=1, reason="toxic"):
    return Sanction(
        player=player,
        action=action,
        reason=reason,
        trigger_text="msg",
        duration="",
        cycle_id=cycle_id,
        original_action=action,
    )


@pytest.fixture()
def ledger(clock) -> EscalationLedger:
    return EscalationLedger(warn_threshold=3, mute_threshold=2, window_seconds=7 * DAY_SECONDS, clock=clock)


class TestEscalation:
    """Tests for check_escalation."""

    def test_third_warn_escalates_to_mute(self, ledger):
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 1))
        assert ledger.check_escalation("Steve") is None
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 2))
        assert ledger.check_escalation("Steve") is None
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 3))

        assert ledger.check_escalation("Steve") is ActionKind.MUTE

    def test_second_mute_escalates_to_ban(self, ledger):
        ledger.record_sanction(sanction("Steve", ActionKind.MUTE, 1))
        assert ledger.check_escalation("Steve") is None
        ledger.record_sanction(sanction("Steve", ActionKind.MUTE, 2))

        assert ledger.check_escalation("Steve") is ActionKind.BAN

    def test_mute_rule_takes_precedence(self, ledger):
        for cycle in range(3):
            ledger.record_sanction(sanction("Steve", ActionKind.WARN, cycle))
        for cycle in range(3, 5):
            ledger.record_sanction(sanction("Steve", ActionKind.MUTE, cycle))

        assert ledger.check_escalation("Steve") is ActionKind.BAN

    def test_entries_outside_window_do_not_count(self, ledger, clock):
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 1))
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 2))
        clock.advance(8 * DAY_SECONDS)
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 3))

        assert ledger.check_escalation("Steve") is None

    def test_players_are_tracked_case_insensitively(self, ledger):
        for cycle, name in enumerate(["steve", "STEVE", "Steve"]):
            ledger.record_sanction(sanction(name, ActionKind.WARN, cycle))

        assert ledger.check_escalation("sTeVe") is ActionKind.MUTE

    def test_kicks_and_bans_never_trigger_escalation(self, ledger):
        for cycle in range(5):
            ledger.record_sanction(sanction("Steve", ActionKind.KICK, cycle))

        assert ledger.check_escalation("Steve") is None

    def test_escalated_action_counts_as_the_original_kind(self, ledger):
        """An escalated MUTE stays a WARN for counting purposes."""
        escalated = Sanction(
            player="Steve",
            action=ActionKind.MUTE,
            reason="Repeat offender: toxic",
            trigger_text="msg",
            duration="1h",
            cycle_id=1,
            original_action=ActionKind.WARN,
        )
        ledger.record_sanction(escalated)
        ledger.record_sanction(sanction("Steve", ActionKind.MUTE, 2))

        assert ledger.check_escalation("Steve") is None

    def test_invalid_configuration_is_rejected(self, clock):
        with pytest.raises(ValueError):
            EscalationLedger(warn_threshold=0, clock=clock)
        with pytest.raises(ValueError):
            EscalationLedger(window_seconds=0, clock=clock)


class TestRecording:
    """Tests for record_escalation and restore."""

    def test_record_escalation_updates_applied_action(self, ledger):
        ledger.record_sanction(sanction("Steve", ActionKind.WARN, 4))
        updated = ledger.record_escalation(
            Sanction(
                player="steve",
                action=ActionKind.MUTE,
                reason="Repeat offender: toxic",
                trigger_text="msg",
                duration="1h",
                cycle_id=4,
                original_action=ActionKind.WARN,
            )
        )

        assert updated is not None
        history = ledger.history()
        assert history[-1].action is ActionKind.WARN
        assert history[-1].applied_action is ActionKind.MUTE
        assert history[-1].reason == "Repeat offender: toxic"

    def test_record_escalation_without_record_returns_none(self, ledger):
        assert ledger.record_escalation(sanction("Ghost", ActionKind.MUTE, 9)) is None

    def test_restore_rebuilds_windows(self, ledger, clock):
        records = [
            SanctionRecord("Steve", ActionKind.MUTE, ActionKind.MUTE, "r", "t", clock.now - 100, 1),
            SanctionRecord("Steve", ActionKind.MUTE, ActionKind.MUTE, "r", "t", clock.now - 50, 2),
        ]

        assert ledger.restore(records) == 2
        assert ledger.check_escalation("Steve") is ActionKind.BAN


class TestCounters:
    """Tests for counters and reporting views."""

    def test_counters_are_monotonic(self, ledger):
        ledger.record_cycle(10)
        ledger.record_cycle(5)
        assert ledger.report_false_positive() == 1
        assert ledger.report_false_positive() == 2

        assert ledger.messages_analyzed == 15
        assert ledger.cycles == 2
        assert ledger.false_positives == 2

    def test_top_players_and_breakdown(self, ledger):
        ledger.record_sanction(sanction("Alice", ActionKind.WARN, 1))
        ledger.record_sanction(sanction("Bob", ActionKind.KICK, 1))
        ledger.record_sanction(sanction("bob", ActionKind.WARN, 2))
        ledger.record_sanction(sanction("Carol", ActionKind.BAN, 2))

        assert ledger.top_sanctioned_players(2) == [("Bob", 2), ("Alice", 1)]
        assert ledger.sanctions_by_action() == {ActionKind.WARN: 2, ActionKind.KICK: 1, ActionKind.BAN: 1}
        assert ledger.total_sanctions == 4

    def test_breakdown_counts_escalated_action(self, ledger):
        ledger.record_sanction(sanction("Alice", ActionKind.WARN, 4))
        escalated = sanction("Alice", ActionKind.MUTE, 4, reason="Repeat offender: toxic")
        ledger.record_escalation(escalated)

        assert ledger.sanctions_by_action() == {ActionKind.MUTE: 1}
        assert ledger.history()[0].action is ActionKind.WARN

    def test_snapshot_counts_last_24h(self, ledger, clock):
        ledger.record_sanction(sanction("Alice", ActionKind.WARN, 1))
        clock.advance(2 * DAY_SECONDS)
        ledger.record_sanction(sanction("Bob", ActionKind.WARN, 2))
        ledger.record_cycle(7)

        snapshot = ledger.snapshot(top_limit=5)

        assert snapshot.total_sanctions == 2
        assert snapshot.sanctions_last_24h == 1
        assert snapshot.messages_analyzed == 7
        assert snapshot.cycles == 1

    def test_history_is_a_copy(self, ledger):
        ledger.record_sanction(sanction("Alice", ActionKind.WARN, 1))
        ledger.history().clear()
        assert ledger.total_sanctions == 1
