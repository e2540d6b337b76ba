import pytest

from mathdelim import convert
from mathdelim.validator.engine import ValidationEngine
from mathdelim.validator.rules import BuiltInRules


class TestValidationEngine:
    @pytest.fixture
    def engine(self):
        return ValidationEngine()

    def test_clean_conversion_is_valid(self, engine):
        original = "Intro \\(a\\)\n\n```\n\\(code\\)\n```\nSee https://example.com/x_1\n\\[b\\]\n"
        result = engine.validate(original, convert(original))
        assert result.valid
        assert result.errors == []

    def test_code_block_changed(self, engine):
        result = engine.validate("```\n\\(a\\)\n```\n", "```\n$a$\n```\n")
        assert not result.valid
        assert any("Code block 1 changed" in e.message for e in result.errors)

    def test_code_block_missing(self, engine):
        result = engine.validate("a\n```\nx\n```\n", "a\nx\n")
        assert not result.valid
        assert any("Missing code blocks" in e.message for e in result.errors)

    def test_url_dropped(self, engine):
        result = engine.validate("see https://example.com/a_b", "see")
        assert not result.valid
        assert any("https://example.com/a_b" in e.message for e in result.errors)

    def test_unpaired_display_delimiter(self, engine):
        result = engine.validate("x", "$$\nx\n")
        assert not result.valid
        assert any("Unpaired '$$'" in e.message for e in result.errors)

    def test_odd_dollar_is_warning(self, engine):
        result = engine.validate("cost $5 today", "cost $5 today")
        assert result.valid
        assert len(result.warnings) == 1
        assert result.warnings[0].location == 1


class TestBuiltInRules:
    def test_dollars_in_code_and_display_ignored(self):
        text = "`$` and\n$$\na $ b\n$$\n```\n$\n```\n"
        assert BuiltInRules.check_inline_dollars(text) == []
        assert BuiltInRules.check_display_delimiters(text) == []

    def test_escaped_dollar_ignored(self):
        assert BuiltInRules.check_inline_dollars("price \\$5") == []

    def test_warning_line_numbers(self):
        text = "ok $x$\n```\ncode\n```\nbad $ here"
        assert BuiltInRules.check_inline_dollars(text) == [(5, "Odd number of '$' on line 5")]
