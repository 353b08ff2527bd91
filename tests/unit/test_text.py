"""Unit tests for epaper_calendar.rendering.text."""

import pytest

from epaper_calendar.rendering.text import ELLIPSIS, truncate_text, visible_length

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestVisibleLength:
    """Tests for visible_length."""

    def test_ascii_counts_every_character(self):
        assert visible_length("Dentist") == 7

    def test_thai_marks_do_not_count(self):
        """Test Thai vowel and tone marks attach to their base consonant."""
        # "ที่" is THO THAHAN + SARA II + MAI EK: one visible column
        assert visible_length("ที่") == 1

    def test_zero_width_joiner_does_not_count(self):
        assert visible_length("a\u200db") == 2


class TestTruncateText:
    """Tests for truncate_text."""

    def test_short_text_unchanged(self):
        """Test text within the limit is returned as is, without an ellipsis."""
        assert truncate_text("Team sync", 32) == "Team sync"

    def test_text_exactly_at_limit_unchanged(self):
        text = "x" * 32
        assert truncate_text(text, 32) == text

    def test_long_text_cut_with_ellipsis(self):
        """Test over-long text keeps the first limit characters plus an ellipsis."""
        text = "Quarterly planning with the whole regional sales team"

        result = truncate_text(text, 32)

        assert result == text[:32] + ELLIPSIS
        assert visible_length(result) == 33

    def test_marks_stay_with_their_base_character(self):
        """Test a cut never leaves a dangling combining mark or drops one."""
        # Each "กี่" is one visible character made of three code points.
        text = "กี่" * 5

        result = truncate_text(text, 3)

        assert result == "กี่" * 3 + ELLIPSIS

    def test_zero_limit_gives_only_ellipsis(self):
        assert truncate_text("abc", 0) == ELLIPSIS

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            truncate_text("abc", -1)

    def test_empty_string(self):
        assert truncate_text("", 5) == ""
