"""Name normalization and slug generation.

PRS profile URLs end in a slug derived from the member's name, but the site is
not consistent about which parts of the name make it into the slug.  A single
free-text name therefore expands to a short, ordered list of slug candidates:

- ``full``              every name part, hyphen-joined
- ``first-last``        first and last part only
- ``skip-middle``       first and last, skipping the middle name(s)
- ``middle-initial``    first, initial of the middle name, last
- ``first-second-last`` first, second and last part (4+ part names)

Generation order is priority order.  Duplicates are dropped by slug, keeping
the first label that produced it.
"""

from __future__ import annotations

import logging
import re

from .models import SlugCandidate

LOGGER = logging.getLogger(__name__)

_RE_HONORIFIC = re.compile(
    r"^\s*(?:dr|shri|sh|smt|prof|mrs|mr|ms|adv|col|s)\.?\s+",
    re.IGNORECASE,
)
_RE_SEPARATORS = re.compile(r"[+_]+")
_RE_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_RE_WHITESPACE = re.compile(r"\s+")


def _strip_honorifics(name: str) -> str:
    """Drop leading honorifics ("Dr. Shri ...") as long as a name remains."""
    current = name
    while True:
        stripped = _RE_HONORIFIC.sub("", current, count=1)
        if stripped == current or not stripped.strip():
            return current
        current = stripped


def clean_name(raw_name: str | None) -> str:
    """Lower-case, strip honorifics and punctuation, collapse whitespace.

    Examples::

        >>> clean_name("Dr. Rahul Gandhi")
        'rahul gandhi'
        >>> clean_name("Smt. Supriya_Sule")
        'supriya sule'
        >>> clean_name("   ")
        ''
    """
    if not raw_name:
        return ""
    cleaned = _strip_honorifics(raw_name.strip().lower())
    cleaned = _RE_SEPARATORS.sub(" ", cleaned)
    cleaned = _RE_NON_ALNUM.sub(" ", cleaned)
    return _RE_WHITESPACE.sub(" ", cleaned).strip()


def generate_name_slugs(raw_name: str | None) -> list[SlugCandidate]:
    """Expand a name into ordered, de-duplicated slug candidates.

    Returns an empty list only when nothing alphanumeric survives cleaning
    (empty or whitespace-only input); callers treat that as invalid input.
    """
    cleaned = clean_name(raw_name)
    if not cleaned:
        return []

    parts = cleaned.split(" ")
    first, last = parts[0], parts[-1]

    generated: list[SlugCandidate] = [SlugCandidate("-".join(parts), "full")]
    if len(parts) >= 2:
        generated.append(SlugCandidate(f"{first}-{last}", "first-last"))
    if len(parts) >= 3:
        generated.append(SlugCandidate(f"{first}-{last}", "skip-middle"))
        generated.append(SlugCandidate(f"{first}-{parts[1][0]}-{last}", "middle-initial"))
    if len(parts) >= 4:
        generated.append(SlugCandidate(f"{first}-{parts[1]}-{last}", "first-second-last"))

    seen: set[str] = set()
    candidates: list[SlugCandidate] = []
    for candidate in generated:
        if candidate.slug in seen:
            continue
        seen.add(candidate.slug)
        candidates.append(candidate)

    LOGGER.debug("Slugs for %r: %s", raw_name, [c.slug for c in candidates])
    return candidates


def slug_strings(raw_name: str | None) -> list[str]:
    """Convenience wrapper returning just the slug text."""
    return [c.slug for c in generate_name_slugs(raw_name)]
