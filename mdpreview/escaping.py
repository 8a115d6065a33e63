"""HTML escaping helpers used wherever text is interpolated into markup."""

from __future__ import annotations

from html import escape


def escape_html(text: str) -> str:
    """Escape ``&``, ``<``, ``>``, and both quote characters in ``text``."""
    return escape(text, quote=True)


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


__all__ = ["escape_html", "normalize_newlines"]
