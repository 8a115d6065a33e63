r"""Derive stable, collision-free anchor slugs from heading text.

Example
-------
>>> from mdpreview.slugs import SlugAllocator
>>> slugs = SlugAllocator()
>>> [slugs.allocate("Foo") for _ in range(3)]
['foo', 'foo-1', 'foo-2']
>>> slugs.allocate("!!!")
'section'
"""

from __future__ import annotations

import dataclasses as dc
import re

FALLBACK_SLUG = "section"

WHITESPACE_RUN = re.compile(r"\s+")
DISALLOWED_CHARS = re.compile(r"[^a-z0-9\-_]")
HYPHEN_RUN = re.compile(r"-+")


def slug_base(text: str) -> str:
    """Return the normalized slug base for ``text`` before disambiguation."""
    base = WHITESPACE_RUN.sub("-", text.lower().strip())
    base = DISALLOWED_CHARS.sub("", base)
    base = HYPHEN_RUN.sub("-", base).strip("-")
    return base or FALLBACK_SLUG


@dc.dataclass(slots=True)
class SlugAllocator:
    """Hand out heading slugs for a single document.

    Attributes
    ----------
    counts : dict[str, int]
        Number of headings seen so far per slug base.
    issued : set[str]
        Every slug returned so far. A suffixed slug can coincide with another
        heading's bare base (``Foo`` twice, then ``Foo 1``); such candidates
        are skipped so ids stay unique.
    """

    counts: dict[str, int] = dc.field(default_factory=dict)
    issued: set[str] = dc.field(default_factory=set)

    def allocate(self, text: str) -> str:
        """Return a slug for ``text`` that no earlier heading received.

        The first heading with a given base gets the bare base; the k-th
        repeat gets ``<base>-<k>``.
        """
        base = slug_base(text)
        seen = self.counts.get(base, 0)
        candidate = base if seen == 0 else f"{base}-{seen}"
        while candidate in self.issued:
            seen += 1
            candidate = f"{base}-{seen}"
        self.counts[base] = seen + 1
        self.issued.add(candidate)
        return candidate


__all__ = ["FALLBACK_SLUG", "SlugAllocator", "slug_base"]
