r"""Fold free-form fence info strings onto canonical highlighter languages.

Authors write ``sh``, ``console``, ``zsh`` or ``shell`` for the same thing;
normalizing them up front keeps highlighting and the ``code-block-<lang>``
CSS hooks stable regardless of phrasing.

Example
-------
>>> from mdpreview.languages import normalize_language
>>> normalize_language("TS")
'typescript'
>>> normalize_language("txt")
'plaintext'
>>> normalize_language("  ") is None
True
"""

from __future__ import annotations

import types

PLAIN_LANGUAGE = "plaintext"

LANGUAGE_ALIASES: types.MappingProxyType[str, str] = types.MappingProxyType(
    {
        "console": "bash",
        "shell": "bash",
        "sh": "bash",
        "shellsession": "bash",
        "zsh": "bash",
        "text": PLAIN_LANGUAGE,
        "plain": PLAIN_LANGUAGE,
        "plaintext": PLAIN_LANGUAGE,
        "txt": PLAIN_LANGUAGE,
        "js": "javascript",
        "javascript": "javascript",
        "mjs": "javascript",
        "cjs": "javascript",
        "jsx": "jsx",
        "ts": "typescript",
        "typescript": "typescript",
        "mermaid": "mermaid",
        "plantuml": "plantuml",
        "puml": "plantuml",
        "yml": "yaml",
        "md": "markdown",
        "c#": "csharp",
        "docker": "dockerfile",
    }
)

DIAGRAM_LANGUAGES = frozenset({"mermaid", "plantuml"})
DIFF_LANGUAGES = frozenset({"diff"})


def normalize_language(language: str | None) -> str | None:
    """Return the canonical tag for ``language``.

    Parameters
    ----------
    language : str or None
        Language hint as written by the author (a fence info word or a
        highlighter's own alias).

    Returns
    -------
    str or None
        ``None`` when no language was given (absent or blank input), the
        aliased tag when the lowercased hint is a known alias, and the
        lowercased hint unchanged otherwise. ``None`` is distinct from
        :data:`PLAIN_LANGUAGE`, which means "explicitly plain text".
    """
    if language is None:
        return None
    lowered = language.strip().lower()
    if not lowered:
        return None
    return LANGUAGE_ALIASES.get(lowered, lowered)


def is_diagram_language(language: str | None) -> bool:
    """Return ``True`` when ``language`` names a diagram kind."""
    return language in DIAGRAM_LANGUAGES


def is_diff_language(language: str | None) -> bool:
    """Return ``True`` when lines in ``language`` carry diff markers."""
    return language in DIFF_LANGUAGES


__all__ = [
    "DIAGRAM_LANGUAGES",
    "DIFF_LANGUAGES",
    "LANGUAGE_ALIASES",
    "PLAIN_LANGUAGE",
    "is_diagram_language",
    "is_diff_language",
    "normalize_language",
]
