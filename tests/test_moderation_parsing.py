"""Tests for classifier reply parsing."""

import json

from antitox.datatypes.action_datatypes import ActionKind
from antitox.moderation.moderation_parsing import parse_verdicts, strip_code_fences


class TestStripCodeFences:
    """Tests for strip_code_fences."""

    def test_json_fence_is_removed(self):
        assert strip_code_fences('```json\n{"sanctions": []}\n```') == '{"sanctions": []}'

    def test_plain_text_is_untouched(self):
        assert strip_code_fences('  []  ') == "[]"


class TestParseVerdicts:
    """Tests for parse_verdicts."""

    def test_object_payload(self):
        reply = json.dumps({
            "sanctions": [
                {"player": "Steve", "action": "warn", "duration": "", "reason": "insult", "trigger_message": "you idiot"},
            ]
        })

        verdicts, ok = parse_verdicts(reply)

        assert ok is True
        assert len(verdicts) == 1
        assert verdicts[0].player == "Steve"
        assert verdicts[0].action is ActionKind.WARN
        assert verdicts[0].trigger_text == "you idiot"

    def test_bare_array_in_code_fence(self):
        reply = '```json\n[{"player": "Alex", "action": "BAN", "duration": "7d", "reason": "hate speech"}]\n```'

        verdicts, ok = parse_verdicts(reply)

        assert ok is True
        assert verdicts[0].action is ActionKind.BAN
        assert verdicts[0].duration == "7d"
        assert verdicts[0].trigger_text == "N/A"

    def test_empty_list_is_a_success(self):
        assert parse_verdicts("[]") == ([], True)

    def test_malformed_reply_is_reported(self):
        verdicts, ok = parse_verdicts("I cannot help with that")
        assert verdicts == []
        assert ok is False

    def test_non_list_sanctions_is_reported(self):
        assert parse_verdicts('{"sanctions": "none"}') == ([], False)

    def test_invalid_entries_are_skipped(self):
        reply = json.dumps([
            {"player": "", "action": "WARN", "reason": "empty player"},
            {"player": "   ", "action": "BAN", "reason": "blank player", "duration": "permanent", "trigger_message": "t"},
            {"player": "Two Words", "action": "WARN", "reason": "name with a space"},
            {"player": "A", "action": "SHADOWBAN", "reason": "unknown kind"},
            {"player": "B", "reason": "no action"},
            "not an object",
            {"player": "C", "action": "KICK", "reason": "valid", "duration": None, "trigger_message": None},
        ])

        verdicts, ok = parse_verdicts(reply)

        assert ok is True
        assert [(v.player, v.action) for v in verdicts] == [("C", ActionKind.KICK)]
        assert verdicts[0].duration == ""
        assert verdicts[0].trigger_text == "N/A"

    def test_trigger_restored_from_annotated_form(self):
        """The trigger keeps the original text, not the normalized annotation."""
        annotated = "k.i.l.l y0u [normalized: kill you]"
        reply = json.dumps([
            {"player": "Steve", "action": "KICK", "reason": "threat", "trigger_message": annotated},
        ])

        verdicts, _ = parse_verdicts(reply, {annotated: "k.i.l.l y0u"})

        assert verdicts[0].trigger_text == "k.i.l.l y0u"

    def test_trigger_annotation_stripped_without_lookup(self):
        reply = json.dumps([
            {"player": "Steve", "action": "KICK", "reason": "threat", "trigger_message": "k i l l [normalized: kill]"},
        ])

        verdicts, _ = parse_verdicts(reply)

        assert verdicts[0].trigger_text == "k i l l"
