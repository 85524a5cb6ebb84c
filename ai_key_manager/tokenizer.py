"""
Tokenizer Module - Splitting config-style lines into key/value pairs.

Handles KEY=value and KEY: value lines, comments, URLs and quoted values,
and decides whether a key name looks like a real environment-style name.
"""

import re
from typing import Optional


_URL_PREFIX = re.compile(r"^https?://", re.IGNORECASE)
_INVALID_KEY_CHARS = re.compile(r"[/\\#$%^&*()!@<>{}\[\]|]")


def _unquote(value: str) -> str:
    """Strip one layer of matching double or single quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def extract_key_value_pair(line: str) -> Optional[tuple[str, str]]:
    """
    Extract a key/value pair from a line of text.

    Tries KEY=value first, then KEY: value. The = form only applies when
    no colon comes before the first =, so "url: a=b" splits on the colon.
    Empty keys or values are returned as-is; callers filter them.

    Args:
        line: A single line of text

    Returns:
        (key, value) tuple, or None for blank lines, comments, URLs and
        lines without a delimiter
    """
    line = line.strip()

    # Skip comments and empty lines
    if not line or line.startswith("#") or line.startswith("//"):
        return None

    if _URL_PREFIX.match(line):
        return None

    eq_pos = line.find("=")
    colon_pos = line.find(":")

    if eq_pos != -1 and (colon_pos == -1 or eq_pos < colon_pos):
        key, _, value = line.partition("=")
        return key.strip(), _unquote(value.strip())

    if colon_pos != -1:
        key, _, value = line.partition(":")
        key = key.strip()
        value = value.strip()

        # URL-like leftovers such as "https : //host" or "host://path"
        if key.lower() in ("http", "https") or value.startswith("//"):
            return None

        return key, _unquote(value)

    return None


def is_valid_key_format(key: str) -> bool:
    """
    Check whether a key name is acceptable as an environment-style name.

    Dot-notation keys (nested config paths) and keys containing shell or
    path punctuation are rejected.
    """
    if "." in key:
        return False
    if _INVALID_KEY_CHARS.search(key):
        return False
    return True
