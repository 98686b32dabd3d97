"""Tests for evasion normalization."""

from antitox.util.evasion import annotate_evasion, normalize_evasion, strip_annotation


class TestNormalizeEvasion:
    """Tests for normalize_evasion."""

    def test_leetspeak_is_mapped(self):
        assert normalize_evasion("y0u 4r3 1d10t") == "you are idiot"

    def test_infix_punctuation_is_removed(self):
        assert normalize_evasion("k.i.l.l") == "kill"
        assert normalize_evasion("n-o-o-b") == "noob"

    def test_spaced_letters_are_collapsed(self):
        assert normalize_evasion("k i l l") == "kill"

    def test_plain_text_is_only_lowercased(self):
        assert normalize_evasion("Hello There") == "hello there"


class TestAnnotateEvasion:
    """Tests for annotate_evasion."""

    def test_obfuscated_message_gets_normalized_form(self):
        """The annotation carries the letters of the hidden word."""
        annotated = annotate_evasion("k.i.l.l y0u")

        assert annotated.startswith("k.i.l.l y0u [normalized: ")
        normalized = annotated[len("k.i.l.l y0u [normalized: "):-1]
        assert normalized.replace(" ", "") == "killyou"

    def test_case_only_difference_is_not_annotated(self):
        assert annotate_evasion("HELLO everyone") == "HELLO everyone"

    def test_strip_annotation_restores_original(self):
        assert strip_annotation(annotate_evasion("k.i.l.l y0u")) == "k.i.l.l y0u"
        assert strip_annotation("plain") == "plain"
