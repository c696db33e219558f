"""Tests for text sanitization."""

from market_sync.utils.sanitize import sanitize_text


class TestSanitizeText:
    def test_none_input(self) -> None:
        assert sanitize_text(None) is None

    def test_strips_tags_and_entities(self) -> None:
        assert sanitize_text("<p>沪指&nbsp;收涨</p><br/>") == "沪指 收涨"

    def test_removes_control_characters(self) -> None:
        assert sanitize_text("Hello\x00World\x1f!") == "Hello World !"

    def test_collapses_whitespace(self) -> None:
        assert sanitize_text("  a \n\n  b\t c ") == "a b c"

    def test_truncation(self) -> None:
        assert sanitize_text("x" * 20, max_length=10) == "x" * 10 + "..."

    def test_short_text_untouched(self) -> None:
        assert sanitize_text("央行降准", max_length=10) == "央行降准"
