"""Escaping for PDF literal strings."""

from __future__ import annotations

_ESCAPES = (
    ("\\", "\\\\"),
    ("(", "\\("),
    (")", "\\)"),
    ("\r", "\\r"),
    ("\n", "\\n"),
    ("\t", "\\t"),
)


def escape_text(raw: str) -> str:
    """Escape *raw* so it can sit inside a ``(...)`` literal in a content stream."""
    value = str(raw)
    # Backslash must go first or the escapes below get doubled.
    for char, replacement in _ESCAPES:
        value = value.replace(char, replacement)
    return value


def encode_stream(content: str) -> bytes:
    """Encode an operator stream for the built-in Latin-1 font; unmappable chars become ``?``."""
    return content.encode("latin-1", errors="replace")
