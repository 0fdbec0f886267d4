"""Candidate URL construction and priority tiering.

MP profiles live under ``/mptrack/{session}/{slug}{suffix}`` and MLA profiles
under ``/mlatrack/{slug}{suffix}``.  The builder walks the search space in
priority order (newest session first, unsuffixed before suffixed) so that the
position of a URL in the output already encodes its tier.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .config import (
    BASE_URL,
    MP_SESSIONS,
    REDUCED_CANDIDATE_CAP,
    REDUCED_SLUG_SUFFIXES,
    SLUG_SUFFIXES,
)
from .models import MLA, MP, CandidateURL, SlugCandidate

LOGGER = logging.getLogger(__name__)


def tier_count(role: str, sessions: Sequence[str] = MP_SESSIONS) -> int:
    """Number of priority tiers for *role* (6 for MP with 3 sessions, 2 for MLA)."""
    if role == MP:
        return len(sessions) * 2
    if role == MLA:
        return 2
    raise ValueError(f"Unknown role {role!r}")


def _slug_text(slug: SlugCandidate | str) -> str:
    return slug.slug if isinstance(slug, SlugCandidate) else slug


def build_candidate_urls(
    slugs: Iterable[SlugCandidate | str],
    role: str,
    *,
    reduced: bool = False,
    base_url: str = BASE_URL,
    sessions: Sequence[str] = MP_SESSIONS,
) -> list[CandidateURL]:
    """Expand slugs into an ordered, de-duplicated list of probe targets.

    With ``reduced=True`` (the alternate-role pass) only the newest session and
    the unsuffixed/``-1`` variants are produced, capped at
    ``REDUCED_CANDIDATE_CAP`` URLs.
    """
    slug_list = [_slug_text(s) for s in slugs if _slug_text(s)]
    base = base_url.rstrip("/")
    suffixes = REDUCED_SLUG_SUFFIXES if reduced else SLUG_SUFFIXES

    # (url, slug, suffix, session, tier) in priority order
    raw: list[tuple[str, str, str, str | None, int]] = []
    if role == MP:
        session_list = list(sessions[:1] if reduced else sessions)
        for rank, session in enumerate(session_list):
            for suffix in suffixes:
                tier = rank * 2 + (1 if suffix else 0)
                for slug in slug_list:
                    url = f"{base}/mptrack/{session}/{slug}{suffix}"
                    raw.append((url, slug, suffix, session, tier))
    elif role == MLA:
        for suffix in suffixes:
            tier = 1 if suffix else 0
            for slug in slug_list:
                raw.append((f"{base}/mlatrack/{slug}{suffix}", slug, suffix, None, tier))
    else:
        raise ValueError(f"Unknown role {role!r}")

    seen: set[str] = set()
    candidates: list[CandidateURL] = []
    for url, slug, suffix, session, tier in raw:
        if url in seen:
            continue
        seen.add(url)
        candidates.append(
            CandidateURL(
                url=url,
                slug=slug,
                suffix=suffix,
                tier=tier,
                index=len(candidates),
                session=session,
            )
        )
        if reduced and len(candidates) >= REDUCED_CANDIDATE_CAP:
            break

    LOGGER.debug(
        "Built %d %s candidate URL(s)%s from %d slug(s)",
        len(candidates),
        role,
        " (reduced)" if reduced else "",
        len(slug_list),
    )
    return candidates


def partition_tiers(
    candidates: Sequence[CandidateURL],
    role: str,
    sessions: Sequence[str] = MP_SESSIONS,
) -> list[list[CandidateURL]]:
    """Group candidates by tier, ascending, keeping list order within a tier.

    Always returns ``tier_count(role)`` groups; tiers with no candidates are
    empty lists (the reduced pass leaves most of them empty).
    """
    total = max(tier_count(role, sessions), max((c.tier for c in candidates), default=-1) + 1)
    tiers: list[list[CandidateURL]] = [[] for _ in range(total)]
    for candidate in sorted(candidates, key=lambda c: c.index):
        tiers[candidate.tier].append(candidate)
    return tiers
