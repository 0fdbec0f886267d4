"""Field extraction from PRS member profile pages.

Every output field is resolved by an ordered list of strategies.  A strategy
is a plain callable ``(soup) -> str | None``; the first one returning a
non-empty value wins and the field's sentinel is used when none does.  A
strategy that raises is logged and skipped, so one broken selector never
blocks the other fields.

MP and MLA pages share most of their Drupal field markup but differ in the
name, image, constituency and term blocks, hence the per-role strategy lists.
Performance metrics and activity tables only exist on MP pages.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag

from .config import BASE_URL
from .models import (
    MLA,
    MP,
    NOT_AVAILABLE,
    NOTE_AFFIDAVIT_SOURCE,
    NOTE_DATA_NOT_AVAILABLE,
    UNKNOWN,
    MemberProfile,
)

LOGGER = logging.getLogger(__name__)

Strategy = Callable[[BeautifulSoup], str | None]
TableStrategy = Callable[[BeautifulSoup], Tag | None]

# ── Pre-compiled regex patterns ──────────────────────────────────────────────

_RE_WHITESPACE = re.compile(r"\s+")
_RE_MORE_MEMBERS = re.compile(r"\(\s*\d+\s*more\s*(?:MPs?|MLAs?)\s*\)", re.IGNORECASE)
_RE_CONSTITUENCY_PREFIX = re.compile(r"^\s*Constituency\s*:?\s*", re.IGNORECASE)
_RE_TERM_END_PREFIX = re.compile(r"^\s*End of Term\s*:?\s*", re.IGNORECASE)
_RE_METRIC_VALUE = re.compile(r"\d+(?:\.\d+)?\s*%?")
_RE_DATA_NOT_AVAILABLE = re.compile(r"data not available", re.IGNORECASE)

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")


# ── Text helpers ─────────────────────────────────────────────────────────────


def _clean(text: str | None) -> str:
    return _RE_WHITESPACE.sub(" ", text or "").strip()


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return _clean(node.get_text(" ", strip=True))


def _strip_label(text: str, label: str) -> str:
    if label:
        text = text.replace(label, " ", 1)
    return text.strip().lstrip(":").strip()


def first_resolved(soup: BeautifulSoup, strategies: Sequence[Strategy], sentinel: str) -> str:
    """Run *strategies* in order and return the first non-empty value."""
    for strategy in strategies:
        try:
            value = strategy(soup)
        except Exception:
            LOGGER.debug(
                "Strategy %s raised; trying next",
                getattr(strategy, "__name__", strategy),
                exc_info=True,
            )
            continue
        value = _clean(value)
        if value:
            return value
    return sentinel


# ── Strategy factories ───────────────────────────────────────────────────────


def _named(strategy: Callable, name: str) -> Callable:
    strategy.__name__ = name
    return strategy


def select_text(selector: str, strip: re.Pattern[str] | None = None) -> Strategy:
    """Text of the first element matching *selector*, minus an optional prefix."""

    def strategy(soup: BeautifulSoup) -> str | None:
        text = _text(soup.select_one(selector))
        if strip is not None:
            text = strip.sub("", text)
        return text or None

    return _named(strategy, f"select_text[{selector}]")


def labelled_block(block_selector: str, label: str, value_selector: str | None = None) -> Strategy:
    """Value of the first ``block_selector`` whose ``.field-label`` mentions *label*.

    With *value_selector* the value is that element's text; otherwise it is
    the block's text with the label removed.
    """

    def strategy(soup: BeautifulSoup) -> str | None:
        for block in soup.select(block_selector):
            label_el = block.select_one(".field-label")
            if label_el is None:
                continue
            label_text = _text(label_el)
            if label.lower() not in label_text.lower():
                continue
            if value_selector is not None:
                value = _text(block.select_one(value_selector))
            else:
                value = _strip_label(_text(block), label_text)
            if value:
                return value
        return None

    return _named(strategy, f"labelled_block[{label}]")


def linked_label(label: str) -> Strategy:
    """State/party blocks: link text next to a label, minus "(N more MPs)" counters."""

    def strategy(soup: BeautifulSoup) -> str | None:
        for block in soup.select(".mp_state, .mla_state"):
            if label.lower() not in _text(block.select_one(".field-label")).lower():
                continue
            links = " ".join(_text(a) for a in block.find_all("a"))
            value = _clean(_RE_MORE_MEMBERS.sub("", links))
            if value:
                return value
        return None

    return _named(strategy, f"linked_label[{label}]")


def image_src(selector: str, base_url: str) -> Strategy:
    def strategy(soup: BeautifulSoup) -> str | None:
        img = soup.select_one(selector)
        if img is None:
            return None
        src = (img.get("src") or "").strip()
        if not src:
            return None
        return src if src.startswith("http") else urljoin(base_url.rstrip("/") + "/", src)

    return _named(strategy, f"image_src[{selector}]")


# ── Identity / term / personal field rules ───────────────────────────────────


def _field_rules(role: str, base_url: str) -> dict[str, list[Strategy]]:
    if role == MP:
        return {
            "name": [
                select_text(".mp-name h1 a"),
                select_text(".mp-name h1"),
                select_text(".field-name-title-field .field-item"),
            ],
            "image_url": [image_src(".field-name-field-image img", base_url)],
            "state": [linked_label("State")],
            "constituency": [select_text(".mp_constituency", strip=_RE_CONSTITUENCY_PREFIX)],
            "party": [linked_label("Party")],
            "term_start": [
                select_text(".term_start .field-name-field-date-of-introduction .field-item")
            ],
            "term_end": [select_text(".term_end", strip=_RE_TERM_END_PREFIX)],
            "no_of_term": [labelled_block(".age, .mp-basic-info > div", "No. of Term")],
            "membership": [labelled_block(".age, .mp-basic-info > div", "Nature of membership")],
            "age": [labelled_block(".personal_profile_parent .gender", "Age")],
            "gender": [labelled_block(".personal_profile_parent .gender", "Gender", "a")],
            "education": [labelled_block(".personal_profile_parent .education", "Education", "a")],
        }
    if role == MLA:
        return {
            "name": [
                select_text(".mla-name h3 .field-name-title-field .field-item"),
                select_text(".field-name-title-field .field-item"),
            ],
            "image_url": [image_src(".field-name-field-mla-profile-image img", base_url)],
            "state": [linked_label("State")],
            "constituency": [
                select_text(".mp_constituency .field-name-field-mla-constituency .field-item")
            ],
            "party": [linked_label("Party")],
            "term_start": [labelled_block(".term_end", "Start Of Term", ".field-item")],
            "term_end": [labelled_block(".term_end", "End Of Term", ".field-item")],
            "no_of_term": [labelled_block(".age, .mp-basic-info > div", "No. of Term")],
            "membership": [select_text(".membership .field-name-field-membership .field-item")],
            "age": [select_text(".personal_profile_parent .age .field-name-field-mla-age .field-item")],
            "gender": [labelled_block(".personal_profile_parent .gender", "Gender", "a")],
            "education": [select_text(".personal_profile_parent .education a")],
        }
    raise ValueError(f"Unknown role {role!r}")


_FIELD_SENTINELS: dict[str, str] = {
    "name": UNKNOWN,
    "image_url": "",
    "state": UNKNOWN,
    "constituency": UNKNOWN,
    "party": UNKNOWN,
    "term_start": NOT_AVAILABLE,
    "term_end": NOT_AVAILABLE,
    "no_of_term": NOT_AVAILABLE,
    "membership": NOT_AVAILABLE,
    "age": NOT_AVAILABLE,
    "gender": NOT_AVAILABLE,
    "education": NOT_AVAILABLE,
}


# ── Performance metrics ──────────────────────────────────────────────────────

# Captions per position: own value, national average, state average.
_METRIC_CAPTIONS: tuple[tuple[str, ...], ...] = (
    ("selected mp", "selected member", "this mp"),
    ("national average", "national avg"),
    ("state average", "state avg"),
)


@dataclass(frozen=True)
class MetricGroup:
    container: str
    field_classes: tuple[str, str, str]  # own, national, state
    output_fields: tuple[str, str, str]
    heading: re.Pattern[str]
    default: str = NOT_AVAILABLE


METRIC_GROUPS: tuple[MetricGroup, ...] = (
    MetricGroup(
        container=".mp-attendance",
        field_classes=(
            "field-name-field-attendance",
            "field-name-field-national-attendance",
            "field-name-field-state-attendance",
        ),
        output_fields=("attendance", "nat_attendance", "state_attendance"),
        heading=re.compile(r"attendance", re.IGNORECASE),
    ),
    MetricGroup(
        container=".mp-debate",
        field_classes=(
            "field-name-field-author",
            "field-name-field-national-debate",
            "field-name-field-state-debate",
        ),
        output_fields=("debates", "nat_debates", "state_debates"),
        heading=re.compile(r"debate", re.IGNORECASE),
    ),
    MetricGroup(
        container=".mp-questions",
        field_classes=(
            "field-name-field-total-expenses-railway",
            "field-name-field-national-questions",
            "field-name-field-state-questions",
        ),
        output_fields=("questions", "nat_questions", "state_questions"),
        heading=re.compile(r"question", re.IGNORECASE),
    ),
    MetricGroup(
        container=".mp-pmb",
        field_classes=(
            "field-name-field-source",
            "field-name-field-national-pmb",
            "field-name-field-state-pmb",
        ),
        output_fields=("pmb", "nat_pmb", "state_pmb"),
        heading=re.compile(r"private member|\bpmb\b", re.IGNORECASE),
        default="0",
    ),
)


def _section_under_heading(soup: BeautifulSoup, pattern: re.Pattern[str]) -> Tag | None:
    for heading in soup.find_all(_HEADING_TAGS):
        if pattern.search(_text(heading)):
            return heading.find_parent(["section", "div"])
    return None


def _metric_scope(soup: BeautifulSoup, group: MetricGroup) -> Tag | None:
    return soup.select_one(group.container) or _section_under_heading(soup, group.heading)


def _numeric(text: str) -> str | None:
    match = _RE_METRIC_VALUE.search(text)
    return match.group(0).replace(" ", "") if match else None


def _count_captions(text: str) -> int:
    lowered = text.lower()
    return sum(1 for captions in _METRIC_CAPTIONS if any(c in lowered for c in captions))


def caption_value(scope: Tag, captions: Sequence[str]) -> str | None:
    """Read the value printed beside a caption such as "National Average".

    Looks, in order, at the caption element's own text, its next sibling
    element, and its enclosing block when that block carries no other caption.
    """
    for string in scope.find_all(string=True):
        if not isinstance(string, NavigableString):
            continue
        lowered = _clean(str(string)).lower()
        caption = next((c for c in captions if c in lowered), None)
        if caption is None:
            continue
        label_el = string.parent
        if label_el is None:
            continue

        own = _text(label_el)
        if label_el is scope:
            # Caption sits directly in the scope; only trust it when unambiguous.
            if _count_captions(own) != 1:
                continue
        idx = own.lower().find(caption)
        residual = own[:idx] + own[idx + len(caption) :]
        value = _numeric(residual)
        if value:
            return value
        if label_el is scope:
            continue

        sibling = label_el.find_next_sibling()
        if sibling is not None and _count_captions(_text(sibling)) == 0:
            value = _numeric(_text(sibling))
            if value:
                return value

        block = label_el.parent
        if block is not None and block is not scope.parent:
            block_text = _text(block)
            if _count_captions(block_text) == 1:
                value = _numeric(block_text.replace(own, " ", 1))
                if value:
                    return value
    return None


def metric_strategies(group: MetricGroup, position: int) -> list[Strategy]:
    """Field selector → positional item → caption match, for one metric."""
    field_class = group.field_classes[position]

    def by_field(soup: BeautifulSoup) -> str | None:
        return _text(soup.select_one(f"{group.container} .{field_class} .field-item")) or None

    def by_position(soup: BeautifulSoup) -> str | None:
        container = soup.select_one(group.container)
        if container is None:
            return None
        items = container.select(".field-item")
        if len(items) <= position:
            return None
        return _text(items[position]) or None

    def by_caption(soup: BeautifulSoup) -> str | None:
        scope = _metric_scope(soup, group)
        if scope is None:
            return None
        return caption_value(scope, _METRIC_CAPTIONS[position])

    return [
        _named(by_field, f"metric_field[{field_class}]"),
        _named(by_position, f"metric_position[{group.container}:{position}]"),
        _named(by_caption, f"metric_caption[{group.container}:{position}]"),
    ]


# ── Activity tables ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TableSpec:
    output_field: str
    container_ids: tuple[str, ...]
    heading: re.Pattern[str]
    id_token: str
    header_columns: tuple[str, ...]


TABLE_SPECS: tuple[TableSpec, ...] = (
    TableSpec(
        output_field="attendance_table",
        container_ids=("block-views-mps-attendance-block",),
        heading=re.compile(r"attendance|%\s*present", re.IGNORECASE),
        id_token="attendance",
        header_columns=("session", "attendance"),
    ),
    TableSpec(
        output_field="debates_table",
        container_ids=("block-views-mps-debate-related-views-block",),
        heading=re.compile(r"debates?\b", re.IGNORECASE),
        id_token="debate",
        header_columns=("date", "debate"),
    ),
    TableSpec(
        output_field="questions_table",
        container_ids=("block-views-mp-related-views-block-2222",),
        heading=re.compile(r"questions?\b", re.IGNORECASE),
        id_token="question",
        header_columns=("date", "ministry"),
    ),
)


def _has_rows(table: Tag | None) -> bool:
    return table is not None and any(row.find("td") for row in table.find_all("tr"))


def _table_in(node: Tag | None) -> Tag | None:
    if node is None:
        return None
    if node.name == "table":
        return node if _has_rows(node) else None
    for table in node.find_all("table"):
        if _has_rows(table):
            return table
    return None


def _table_near_heading(heading: Tag) -> Tag | None:
    for sibling in heading.find_next_siblings():
        if sibling.name in _HEADING_TAGS:
            break
        table = _table_in(sibling)
        if table is not None:
            return table
    section = heading.find_parent(["section", "div"])
    if section is None:
        return None
    for table in heading.find_all_next("table"):
        if section not in table.parents:
            break
        if _has_rows(table):
            return table
    return None


def table_strategies(spec: TableSpec) -> list[TableStrategy]:
    """Known id → heading text → id substring → header columns."""

    def by_id(soup: BeautifulSoup) -> Tag | None:
        for container_id in spec.container_ids:
            table = _table_in(soup.find(id=container_id))
            if table is not None:
                return table
        return None

    def by_heading(soup: BeautifulSoup) -> Tag | None:
        for heading in soup.find_all(_HEADING_TAGS):
            if spec.heading.search(_text(heading)):
                table = _table_near_heading(heading)
                if table is not None:
                    return table
        return None

    def by_id_substring(soup: BeautifulSoup) -> Tag | None:
        token = re.compile(re.escape(spec.id_token), re.IGNORECASE)
        for node in soup.find_all(id=token):
            table = _table_in(node)
            if table is not None:
                return table
        return None

    def by_header_columns(soup: BeautifulSoup) -> Tag | None:
        for table in soup.find_all("table"):
            header_cells = table.find_all("th")
            if not header_cells:
                first_row = table.find("tr")
                header_cells = first_row.find_all("td") if first_row else []
            headers = [_text(cell).lower() for cell in header_cells]
            if all(any(col in h for h in headers) for col in spec.header_columns):
                if _has_rows(table):
                    return table
        return None

    return [
        _named(by_id, f"table_id[{spec.output_field}]"),
        _named(by_heading, f"table_heading[{spec.output_field}]"),
        _named(by_id_substring, f"table_id_substring[{spec.output_field}]"),
        _named(by_header_columns, f"table_header_columns[{spec.output_field}]"),
    ]


def find_table(soup: BeautifulSoup, spec: TableSpec) -> str:
    for strategy in table_strategies(spec):
        try:
            table = strategy(soup)
        except Exception:
            LOGGER.debug("Table strategy %s raised", strategy.__name__, exc_info=True)
            continue
        if table is not None:
            LOGGER.debug("%s resolved by %s", spec.output_field, strategy.__name__)
            return str(table)
    return ""


# ── Page-level flags ─────────────────────────────────────────────────────────


def has_data_not_available_banner(soup: BeautifulSoup) -> bool:
    """Page-wide banner only; a section heading saying the same thing does not count."""
    return any(_RE_DATA_NOT_AVAILABLE.search(_text(node)) for node in soup.select(".text-center h3"))


# ── Public API ───────────────────────────────────────────────────────────────


def extract_profile(html: str, role: str, *, base_url: str = BASE_URL) -> MemberProfile:
    """Parse a validated profile page into a fully-shaped :class:`MemberProfile`."""
    soup = BeautifulSoup(html, "html.parser")
    data_not_available = has_data_not_available_banner(soup)

    values: dict[str, str | bool] = {"role": role}
    for field_name, strategies in _field_rules(role, base_url).items():
        values[field_name] = first_resolved(soup, strategies, _FIELD_SENTINELS[field_name])

    if role == MP:
        for group in METRIC_GROUPS:
            for position, field_name in enumerate(group.output_fields):
                values[field_name] = first_resolved(
                    soup, metric_strategies(group, position), group.default
                )
        for spec in TABLE_SPECS:
            values[spec.output_field] = find_table(soup, spec)
    else:
        values["note"] = NOTE_DATA_NOT_AVAILABLE if data_not_available else NOTE_AFFIDAVIT_SOURCE

    profile = MemberProfile(**values)
    profile.data_available = profile.is_resolved and not data_not_available
    _log_summary(profile)
    return profile


def _log_summary(profile: MemberProfile) -> None:
    LOGGER.debug(
        "Extracted %s %s | party=%s constituency=%s state=%s | "
        "attendance=%s debates=%s questions=%s pmb=%s | tables: %s/%s/%s",
        profile.role,
        profile.name,
        profile.party,
        profile.constituency,
        profile.state,
        profile.attendance,
        profile.debates,
        profile.questions,
        profile.pmb,
        bool(profile.attendance_table),
        bool(profile.debates_table),
        bool(profile.questions_table),
    )
