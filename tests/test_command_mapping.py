"""Tests for sanction to command rendering."""

import pytest

from antitox.configuration.moderation_settings import DEFAULT_COMMAND_TEMPLATES
from antitox.datatypes.action_datatypes import ActionKind, Sanction
from antitox.moderation.command_mapping import CommandMapper


def sanction(action, duration="", reason="insult", trigger="you idiot", player="Steve"):
    return Sanction(
        player=player,
        action=action,
        reason=reason,
        trigger_text=trigger,
        duration=duration,
        cycle_id=1,
        original_action=action,
    )


@pytest.fixture()
def mapper() -> CommandMapper:
    return CommandMapper(DEFAULT_COMMAND_TEMPLATES, default_mute_duration="1h", default_ban_duration="1d")


class TestBuild:
    """Tests for CommandMapper.build."""

    def test_warn(self, mapper):
        assert mapper.build(sanction(ActionKind.WARN)) == 'advancedban:warn Steve [ATOX AI] insult | Message: "you idiot"'

    def test_mute_uses_given_duration(self, mapper):
        assert mapper.build(sanction(ActionKind.MUTE, "30m")).startswith("advancedban:tempmute Steve 30m ")

    def test_mute_without_duration_uses_default(self, mapper):
        assert mapper.build(sanction(ActionKind.MUTE)).startswith("advancedban:tempmute Steve 1h ")

    def test_kick(self, mapper):
        assert mapper.build(sanction(ActionKind.KICK)).startswith("advancedban:kick Steve ")

    def test_permanent_ban(self, mapper):
        assert mapper.build(sanction(ActionKind.BAN, "permanent")).startswith("advancedban:ban Steve ")

    def test_temporary_ban_with_and_without_duration(self, mapper):
        assert mapper.build(sanction(ActionKind.BAN, "7d")).startswith("advancedban:tempban Steve 7d ")
        assert mapper.build(sanction(ActionKind.BAN)).startswith("advancedban:tempban Steve 1d ")

    def test_ipban_permanent_when_no_duration(self, mapper):
        assert mapper.build(sanction(ActionKind.IPBAN)).startswith("advancedban:ipban Steve ")
        assert mapper.build(sanction(ActionKind.IPBAN, "Permanent")).startswith("advancedban:ipban Steve ")

    def test_ipban_temporary(self, mapper):
        assert mapper.build(sanction(ActionKind.IPBAN, "30d")).startswith("advancedban:tempipban Steve 30d ")


class TestFormatReason:
    """Tests for CommandMapper.format_reason."""

    def test_double_quotes_are_replaced(self, mapper):
        reason = mapper.format_reason(sanction(ActionKind.WARN, reason='said "bad"', trigger='"quoted"'))
        assert reason == "[ATOX AI] said 'bad' | Message: \"'quoted'\""

    def test_missing_trigger_is_omitted(self, mapper):
        assert mapper.format_reason(sanction(ActionKind.WARN, trigger="N/A")) == "[ATOX AI] insult"

    def test_custom_prefix(self):
        mapper = CommandMapper(DEFAULT_COMMAND_TEMPLATES, reason_prefix="[BOT]")
        assert mapper.format_reason(sanction(ActionKind.KICK, trigger="N/A")) == "[BOT] insult"


class TestConstruction:
    """Tests for template validation at construction."""

    def test_missing_template_is_rejected(self):
        templates = dict(DEFAULT_COMMAND_TEMPLATES)
        del templates["ban_permanent"]

        with pytest.raises(ValueError, match="ban_permanent"):
            CommandMapper(templates)

    def test_unknown_field_is_rejected(self):
        templates = dict(DEFAULT_COMMAND_TEMPLATES)
        templates["warn"] = "warn {player} {server}"

        with pytest.raises(ValueError, match="server"):
            CommandMapper(templates)

    def test_custom_template(self):
        templates = dict(DEFAULT_COMMAND_TEMPLATES)
        templates["kick"] = "kick {player}"
        assert CommandMapper(templates).build(sanction(ActionKind.KICK)) == "kick Steve"
