"""Build the final :class:`ResolutionResult` from one or two role passes."""

from __future__ import annotations

from collections.abc import Sequence

from .models import MemberProfile, NameQuery, PassReport, ResolutionResult


def _all_urls(reports: Sequence[PassReport]) -> tuple[str, ...]:
    return tuple(url for report in reports for url in report.urls_checked)


def assemble_found(query: NameQuery, reports: Sequence[PassReport]) -> ResolutionResult:
    """Result for a run whose last pass produced a hit."""
    winning = reports[-1]
    if winning.hit is None or winning.hit.profile is None:
        raise ValueError("assemble_found() needs a pass with a hit")
    return ResolutionResult(
        query=query,
        profile=winning.hit.profile,
        found=True,
        searched_as=query.role,
        found_as=winning.role,
        source_url=winning.hit.url,
        urls_checked=_all_urls(reports),
        passes=tuple(reports),
    )


def assemble_not_found(query: NameQuery, reports: Sequence[PassReport]) -> ResolutionResult:
    """All-sentinel result once every pass came back empty."""
    return ResolutionResult(
        query=query,
        profile=MemberProfile.empty(),
        found=False,
        searched_as=query.role,
        urls_checked=_all_urls(reports),
        passes=tuple(reports),
    )
