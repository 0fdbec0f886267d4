"""Public entry point: resolve a member name + role to a PRS profile.

The controller has two states.  ``Primary`` probes the requested role with the
full candidate budget; only if it exhausts every tier does ``Alternate`` probe
the opposite role with the reduced budget.  The result records both the role
asked for (``searched_as``) and the role that matched (``found_as``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .assembler import assemble_found, assemble_not_found
from .candidates import build_candidate_urls
from .fetcher import PageFetcher
from .models import NameQuery, PassReport, ResolutionResult, normalize_role, opposite_role
from .normalize import generate_name_slugs
from .scheduler import ProbeScheduler

LOGGER = logging.getLogger(__name__)


@dataclass
class MemberResolver:
    fetcher: PageFetcher = field(default_factory=PageFetcher)
    scheduler: ProbeScheduler | None = None

    def __post_init__(self) -> None:
        if self.scheduler is None:
            self.scheduler = ProbeScheduler(fetcher=self.fetcher)

    def resolve(self, query: NameQuery) -> ResolutionResult:
        role = normalize_role(query.role)
        if role != query.role:
            query = NameQuery(query.name, role, query.constituency, query.state)

        slugs = generate_name_slugs(query.name)
        if not slugs:
            raise ValueError(f"name must contain letters or digits, got {query.name!r}")

        LOGGER.info(
            "Resolving %r as %s (%d slug candidate(s))%s",
            query.name,
            role,
            len(slugs),
            f" hints: {query.constituency or '-'} / {query.state or '-'}"
            if query.constituency or query.state
            else "",
        )

        primary = self._run_pass(slugs, role, reduced=False)
        if primary.found:
            return assemble_found(query, [primary])

        alternate_role = opposite_role(role)
        LOGGER.info("No %s match for %r; trying %s", role, query.name, alternate_role)
        alternate = self._run_pass(slugs, alternate_role, reduced=True)
        if alternate.found:
            return assemble_found(query, [primary, alternate])

        LOGGER.info(
            "No match for %r under %s or %s (%d URL(s) checked)",
            query.name,
            role,
            alternate_role,
            len(primary.urls_checked) + len(alternate.urls_checked),
        )
        return assemble_not_found(query, [primary, alternate])

    def _run_pass(self, slugs, role: str, *, reduced: bool) -> PassReport:
        candidates = build_candidate_urls(slugs, role, reduced=reduced)
        return self.scheduler.run(candidates, role, reduced=reduced)

    def close(self) -> None:
        self.fetcher.close()


def resolve_member(
    name: str,
    role: str,
    constituency: str | None = None,
    state: str | None = None,
    *,
    resolver: MemberResolver | None = None,
) -> ResolutionResult:
    """Resolve *name* as *role* (``"MP"`` or ``"MLA"``).

    Raises ``ValueError`` only for contract violations (empty name, unknown
    role); every search outcome, including "not found", is returned.
    """
    query = NameQuery(
        name=(name or "").strip(),
        role=normalize_role(role),
        constituency=(constituency or "").strip() or None,
        state=(state or "").strip() or None,
    )
    if resolver is not None:
        return resolver.resolve(query)
    owned = MemberResolver()
    try:
        return owned.resolve(query)
    finally:
        owned.close()
