"""Tests for the tokenizer module."""

import pytest

from ai_key_manager.tokenizer import extract_key_value_pair, is_valid_key_format


class TestExtractKeyValuePair:
    """Tests for splitting lines into key/value pairs."""

    def test_equals_form(self):
        """Should split KEY=value."""
        assert extract_key_value_pair("KEY=value") == ("KEY", "value")

    def test_trims_whitespace(self):
        """Should trim the line, the key and the value."""
        assert extract_key_value_pair("   KEY  =  value  ") == ("KEY", "value")

    def test_splits_on_first_equals(self):
        """Values may contain further equals signs."""
        assert extract_key_value_pair("TOKEN=abc==") == ("TOKEN", "abc==")

    def test_colon_form(self):
        """Should split KEY : value."""
        assert extract_key_value_pair("KEY : value") == ("KEY", "value")

    def test_colon_before_equals_uses_colon(self):
        """A colon ahead of the first equals sign wins."""
        assert extract_key_value_pair("KEY: a=b") == ("KEY", "a=b")

    def test_double_quoted_value(self):
        """Should strip surrounding double quotes."""
        assert extract_key_value_pair('KEY="quoted value"') == ("KEY", "quoted value")

    def test_single_quoted_value(self):
        """Should strip surrounding single quotes."""
        assert extract_key_value_pair("KEY: 'quoted'") == ("KEY", "quoted")

    def test_strips_only_one_quote_layer(self):
        """Only the outermost matching pair of quotes is removed."""
        assert extract_key_value_pair("KEY=\"'inner'\"") == ("KEY", "'inner'")

    def test_mismatched_quotes_kept(self):
        """Quotes that do not match on both ends are left alone."""
        assert extract_key_value_pair("KEY=\"abc'") == ("KEY", "\"abc'")

    def test_empty_value_kept(self):
        """An empty value is returned, not rejected."""
        assert extract_key_value_pair("KEY=") == ("KEY", "")

    def test_empty_key_kept(self):
        """An empty key is returned, callers filter it."""
        assert extract_key_value_pair("=VALUE") == ("", "VALUE")

    @pytest.mark.parametrize("line", ["", "   ", "# comment", "#KEY=value", "// KEY=value"])
    def test_blank_and_comment_lines(self, line):
        """Blank and comment lines produce nothing."""
        assert extract_key_value_pair(line) is None

    @pytest.mark.parametrize("line", [
        "https://example.com/path",
        "http://example.com/?a=b",
        "HTTPS://EXAMPLE.COM",
    ])
    def test_urls_rejected(self, line):
        """Absolute URLs are never key/value pairs."""
        assert extract_key_value_pair(line) is None

    def test_url_leftovers_rejected(self):
        """Colon-split URL fragments are rejected."""
        assert extract_key_value_pair("https : //example.com") is None
        assert extract_key_value_pair("ftp://example.com") is None

    def test_no_delimiter(self):
        """Lines without a delimiter produce nothing."""
        assert extract_key_value_pair("just some words") is None

    def test_round_trip_is_stable(self):
        """Re-joining a pair and tokenizing again gives the same pair."""
        key, value = extract_key_value_pair("OPENAI_API_KEY = sk-abc123")
        assert extract_key_value_pair(f"{key}={value}") == (key, value)


class TestIsValidKeyFormat:
    """Tests for key name validation."""

    @pytest.mark.parametrize("key", ["VALID_KEY", "valid_key", "validKey123", "MY-KEY", "My Key"])
    def test_valid_keys(self, key):
        assert is_valid_key_format(key) is True

    @pytest.mark.parametrize("key", ["INVALID.KEY", ".", "a.b.c", "OPENAI_API_KEY."])
    def test_dot_rejected(self, key):
        """Any dot makes a key invalid."""
        assert is_valid_key_format(key) is False

    @pytest.mark.parametrize("char", list("/\\#$%^&*()!@<>{}[]|"))
    def test_special_characters_rejected(self, char):
        assert is_valid_key_format(f"KEY{char}NAME") is False
