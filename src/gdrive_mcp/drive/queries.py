"""Builders for Drive ``files.list`` query strings.

All user-supplied values go through escape_query_value() so quotes and
backslashes cannot terminate the string literal early.
"""


def escape_query_value(value: str) -> str:
    """Escape a value for use inside a single-quoted query literal.

    Backslashes are escaped first so the escapes added for quotes are
    not doubled.
    """
    return value.replace("\\", "\\\\").replace("'", "\\'")


def name_equals(name: str) -> str:
    """Query matching files whose name is exactly ``name``."""
    return f"name = '{escape_query_value(name)}'"


def full_text_contains(text: str) -> str:
    """Query matching files whose name, description or content contains ``text``."""
    return f"fullText contains '{escape_query_value(text)}'"
