"""Tiered, bounded-concurrency probing of candidate profile URLs.

Tiers run one after another.  Inside a tier every candidate is submitted to a
single thread pool that lives for the whole pass, so the pool size is the
global cap on in-flight fetches.  The scheduler waits for the whole tier to
settle before deciding: stragglers are never cancelled, and once a tier has a
hit no later tier is submitted.  Ties inside a tier go to the lowest index.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from .candidates import partition_tiers
from .config import MAX_CONCURRENCY
from .extractor import extract_profile
from .fetcher import FetchError, PageFetcher
from .models import CandidateURL, PassReport, ProbeOutcome, ProbeStatus
from .validator import validate_member_page

LOGGER = logging.getLogger(__name__)


@dataclass
class ProbeScheduler:
    fetcher: PageFetcher = field(default_factory=PageFetcher)
    max_concurrency: int = MAX_CONCURRENCY
    extract: Callable = field(default=extract_profile, repr=False)

    def run(
        self,
        candidates: Sequence[CandidateURL],
        role: str,
        *,
        reduced: bool = False,
    ) -> PassReport:
        tiers = partition_tiers(candidates, role)
        report = PassReport(
            role=role,
            reduced=reduced,
            candidates=len(candidates),
            tiers_total=len(tiers),
        )
        t_start = time.perf_counter()

        with ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="probe"
        ) as pool:
            for tier_no, tier in enumerate(tiers):
                if not tier:
                    continue
                report.tiers_probed += 1
                futures = [pool.submit(self._probe, candidate, role) for candidate in tier]
                wait(futures)

                outcomes = [f.result() for f in futures]
                report.outcomes.extend(outcomes)
                report.urls_checked.extend(o.url for o in outcomes)

                hit = next((o for o in outcomes if o.status is ProbeStatus.HIT), None)
                LOGGER.debug(
                    "  %s tier %d: %d probed, %s",
                    role,
                    tier_no,
                    len(outcomes),
                    f"hit {hit.url}" if hit else "no hit",
                )
                if hit is not None:
                    report.hit = hit
                    break

        report.elapsed_s = time.perf_counter() - t_start
        LOGGER.info(
            "%s pass%s: %d/%d tier(s), %d URL(s) checked, %s (%.2fs)",
            role,
            " (reduced)" if reduced else "",
            report.tiers_probed,
            report.tiers_total,
            len(report.urls_checked),
            f"found {report.hit.url}" if report.hit else "no match",
            report.elapsed_s,
        )
        return report

    def _probe(self, candidate: CandidateURL, role: str) -> ProbeOutcome:
        """Fetch, validate and extract one candidate; never raises."""
        t0 = time.perf_counter()

        def _outcome(status: ProbeStatus, reason: str = "", profile=None) -> ProbeOutcome:
            return ProbeOutcome(
                candidate=candidate,
                status=status,
                reason=reason,
                profile=profile,
                duration_s=time.perf_counter() - t0,
            )

        try:
            html = self.fetcher.fetch(candidate.url)
        except FetchError as exc:
            LOGGER.debug("  miss %s: %s", candidate.url, exc)
            return _outcome(ProbeStatus.MISS, "fetch-failed")
        except Exception:
            LOGGER.exception("Unexpected error fetching %s", candidate.url)
            return _outcome(ProbeStatus.ERROR, "fetch-failed")

        try:
            if not validate_member_page(html, role):
                return _outcome(ProbeStatus.MISS, "rejected")
            profile = self.extract(html, role)
        except Exception:
            LOGGER.exception("Unexpected error parsing %s", candidate.url)
            return _outcome(ProbeStatus.ERROR, "parse-error")

        if not profile.is_resolved:
            LOGGER.debug("  miss %s: page validated but name unresolved", candidate.url)
            return _outcome(ProbeStatus.MISS, "unresolved-name")
        LOGGER.debug("  hit %s -> %s", candidate.url, profile.name)
        return _outcome(ProbeStatus.HIT, profile=profile)
