"""Cheap heuristic check that a fetched page is a member profile.

This is a marker-substring classifier, not a schema validator.  False
positives are expected; the scheduler rejects pages whose name does not
resolve.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from .config import MIN_PAGE_LENGTH
from .models import MLA, MP

LOGGER = logging.getLogger(__name__)

_RE_ERROR_MARKERS = re.compile(r"page not found|no member found", re.IGNORECASE)
# "404" counts only in the <title> or the first <h1>.
_RE_STATUS_MARKER = re.compile(r"\b404\b")
_RE_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_RE_FIRST_H1 = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)

_INDICATORS: dict[str, tuple[str, ...]] = {
    MP: ("mp_profile_header_info", "mp-parliamentary-performance", "mp_state"),
    MLA: ("mla-name", "field-name-field-mla-profile-image", "mp_state"),
}

_MIN_INDICATORS: dict[str, int] = {MP: 2, MLA: 1}


class PageVerdict(Enum):
    PROFILE = "profile"
    ERROR_PAGE = "error_page"
    INDETERMINATE = "indeterminate"


def _has_status_marker(html: str) -> bool:
    for pattern in (_RE_TITLE, _RE_FIRST_H1):
        match = pattern.search(html)
        if match and _RE_STATUS_MARKER.search(match.group(1)):
            return True
    return False


def classify_page(html: str | None, role: str, *, min_length: int = MIN_PAGE_LENGTH) -> PageVerdict:
    if role not in _INDICATORS:
        raise ValueError(f"Unknown role {role!r}")
    if not html or len(html) < min_length:
        return PageVerdict.ERROR_PAGE
    marker = _RE_ERROR_MARKERS.search(html)
    if marker:
        LOGGER.debug("Error marker %r found in page", marker.group(0))
        return PageVerdict.ERROR_PAGE
    if _has_status_marker(html):
        LOGGER.debug("404 marker found in page title or heading")
        return PageVerdict.ERROR_PAGE
    present = sum(1 for indicator in _INDICATORS[role] if indicator in html)
    if present >= _MIN_INDICATORS[role]:
        return PageVerdict.PROFILE
    return PageVerdict.INDETERMINATE


def validate_member_page(html: str | None, role: str) -> bool:
    return classify_page(html, role) is PageVerdict.PROFILE
