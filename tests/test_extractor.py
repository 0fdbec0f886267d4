"""Tests for profile field extraction."""

from __future__ import annotations

from bs4 import BeautifulSoup

from prs_track.extractor import (
    METRIC_GROUPS,
    caption_value,
    extract_profile,
    first_resolved,
    select_text,
)
from prs_track.models import (
    MLA,
    MP,
    NOT_AVAILABLE,
    NOTE_AFFIDAVIT_SOURCE,
    NOTE_DATA_NOT_AVAILABLE,
    PROFILE_KEYS,
    UNKNOWN,
)

# ── Alternate page layouts ───────────────────────────────────────────────────

_POSITIONAL_PERFORMANCE = """
<div class="mp-parliamentary-performance">
  <div class="mp-attendance">
    <div class="stat"><div class="field-item">88%</div></div>
    <div class="stat"><div class="field-item">79%</div></div>
    <div class="stat"><div class="field-item">80%</div></div>
  </div>
</div>
"""

_CAPTION_PERFORMANCE = """
<div class="mp-parliamentary-performance">
  <div class="mp-attendance">
    <div class="stat"><span class="caption">Selected MP</span><strong>51%</strong></div>
    <div class="stat"><span class="caption">National Average</span><strong>79%</strong></div>
    <div class="stat"><strong>82%</strong><p>State Average</p></div>
  </div>
  <section class="debates">
    <h2>Debates</h2>
    <div class="stat"><strong>12</strong><p>Selected MP</p></div>
    <div class="stat"><strong>45.2</strong><p>National Average</p></div>
  </section>
</div>
"""

_ROW = "<tr><td>{a}</td><td>{b}</td></tr>"


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


# ── first_resolved ───────────────────────────────────────────────────────────


class TestFirstResolved:
    def test_first_non_empty_wins(self) -> None:
        soup = _soup('<p class="a"> </p><p class="b">second</p><p class="c">third</p>')
        strategies = [select_text(".a"), select_text(".b"), select_text(".c")]
        assert first_resolved(soup, strategies, UNKNOWN) == "second"

    def test_sentinel_when_nothing_matches(self) -> None:
        assert first_resolved(_soup("<p></p>"), [select_text(".missing")], UNKNOWN) == UNKNOWN

    def test_raising_strategy_is_skipped(self) -> None:
        def broken(soup):
            raise AttributeError("selector drifted")

        soup = _soup('<p class="b">ok</p>')
        assert first_resolved(soup, [broken, select_text(".b")], UNKNOWN) == "ok"

    def test_whitespace_is_collapsed(self) -> None:
        soup = _soup('<p class="a">  Rae \n   Bareli </p>')
        assert first_resolved(soup, [select_text(".a")], UNKNOWN) == "Rae Bareli"


# ── MP pages ─────────────────────────────────────────────────────────────────


class TestExtractMpProfile:
    def test_identity_fields(self, mp_html) -> None:
        p = extract_profile(mp_html, MP, base_url="https://prsindia.org")
        assert p.role == MP
        assert p.name == "Rahul Gandhi"
        assert p.image_url == "https://prsindia.org/sites/default/files/mp-images/rahul-gandhi.jpg"
        assert p.state == "Uttar Pradesh"
        assert p.party == "Indian National Congress"
        assert p.constituency == "Rae Bareli"

    def test_term_and_personal_fields(self, mp_html) -> None:
        p = extract_profile(mp_html, MP)
        assert p.term_start == "04-Jun-2024"
        assert p.term_end == "In Office"
        assert p.no_of_term == "5"
        assert p.membership == "Elected"
        assert p.age == "54"
        assert p.gender == "Male"
        assert p.education == "Post Graduate"

    def test_metrics_from_field_selectors(self, mp_html) -> None:
        p = extract_profile(mp_html, MP)
        assert (p.attendance, p.nat_attendance, p.state_attendance) == ("51%", "79%", "82%")
        assert (p.debates, p.nat_debates, p.state_debates) == ("8", "45.2", "39.1")
        assert (p.questions, p.nat_questions, p.state_questions) == ("99", "130.6", "140.2")
        assert (p.pmb, p.nat_pmb, p.state_pmb) == ("2", "1.2", "0.9")

    def test_tables_from_known_ids(self, mp_html) -> None:
        p = extract_profile(mp_html, MP)
        assert p.attendance_table.startswith("<table")
        assert "Budget Session 2025" in p.attendance_table
        assert "Motion of Thanks" in p.debates_table
        assert "Status of NEET" in p.questions_table

    def test_mp_note_empty_and_data_available(self, mp_html) -> None:
        p = extract_profile(mp_html, MP)
        assert p.note == ""
        assert p.data_available is True

    def test_positional_metrics(self, make_mp_html) -> None:
        p = extract_profile(make_mp_html(performance=_POSITIONAL_PERFORMANCE), MP)
        assert (p.attendance, p.nat_attendance, p.state_attendance) == ("88%", "79%", "80%")

    def test_caption_metrics(self, make_mp_html) -> None:
        p = extract_profile(make_mp_html(performance=_CAPTION_PERFORMANCE), MP)
        assert (p.attendance, p.nat_attendance, p.state_attendance) == ("51%", "79%", "82%")
        assert (p.debates, p.nat_debates) == ("12", "45.2")
        assert p.state_debates == NOT_AVAILABLE

    def test_missing_metrics_use_defaults(self, make_mp_html) -> None:
        p = extract_profile(make_mp_html(performance=""), MP)
        assert p.attendance == NOT_AVAILABLE
        assert p.questions == NOT_AVAILABLE
        assert (p.pmb, p.nat_pmb, p.state_pmb) == ("0", "0", "0")

    def test_missing_tables_are_empty_strings(self, make_mp_html) -> None:
        p = extract_profile(make_mp_html(tables=""), MP)
        assert (p.attendance_table, p.debates_table, p.questions_table) == ("", "", "")

    def test_section_heading_is_not_the_banner(self, make_mp_html) -> None:
        tables = "<section><h2>Debates data not available</h2><p>No debates yet.</p></section>"
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert p.data_available is True
        assert p.note == ""

    def test_unresolved_name(self, make_mp_html) -> None:
        p = extract_profile(make_mp_html(name=None), MP)
        assert p.name == UNKNOWN
        assert not p.is_resolved
        assert p.data_available is False
        assert p.party == "Indian National Congress"


class TestTableFallbacks:
    def test_table_under_heading(self, make_mp_html) -> None:
        tables = (
            "<section><h2>Questions asked</h2>"
            "<table><tr><th>Date</th><th>Ministry</th></tr>"
            + _ROW.format(a="01-Aug-2024", b="Health")
            + "</table></section>"
        )
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert "Health" in p.questions_table
        assert p.attendance_table == ""
        assert p.debates_table == ""

    def test_heading_beats_id_substring(self, make_mp_html) -> None:
        tables = (
            '<div id="questions-legacy"><table>'
            + _ROW.format(a="legacy", b="table")
            + "</table></div>"
            "<section><h2>Questions</h2><table>"
            + _ROW.format(a="current", b="table")
            + "</table></section>"
        )
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert "current" in p.questions_table
        assert "legacy" not in p.questions_table

    def test_id_substring(self, make_mp_html) -> None:
        tables = (
            '<div id="block-views-debates-2025"><table>'
            + _ROW.format(a="12-Dec-2024", b="Constitution at 75")
            + "</table></div>"
        )
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert "Constitution at 75" in p.debates_table

    def test_header_columns(self, make_mp_html) -> None:
        tables = (
            '<div class="misc"><table><tr><th>Session</th><th>Attendance (%)</th></tr>'
            + _ROW.format(a="Winter Session 2024", b="61%")
            + "</table></div>"
        )
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert "Winter Session 2024" in p.attendance_table

    def test_header_only_table_is_ignored(self, make_mp_html) -> None:
        tables = (
            '<div id="block-views-mps-attendance-block"><table>'
            "<tr><th>Session</th><th>Attendance</th></tr></table></div>"
        )
        p = extract_profile(make_mp_html(tables=tables), MP)
        assert p.attendance_table == ""


# ── caption_value ────────────────────────────────────────────────────────────


class TestCaptionValue:
    def test_value_inside_caption_element(self) -> None:
        soup = _soup("<div><p>National Average: 79.5%</p><p>Selected MP: 51%</p></div>")
        scope = soup.div
        assert caption_value(scope, ("national average",)) == "79.5%"
        assert caption_value(scope, ("selected mp",)) == "51%"

    def test_value_in_next_sibling(self) -> None:
        soup = _soup("<div><span>State Avg</span><b>40</b></div>")
        assert caption_value(soup.div, ("state avg",)) == "40"

    def test_no_caption(self) -> None:
        soup = _soup("<div><span>Something else</span><b>40</b></div>")
        assert caption_value(soup.div, ("state avg",)) is None

    def test_metric_groups_cover_four_metrics(self) -> None:
        assert [g.container for g in METRIC_GROUPS] == [
            ".mp-attendance",
            ".mp-debate",
            ".mp-questions",
            ".mp-pmb",
        ]


# ── MLA pages ────────────────────────────────────────────────────────────────


class TestExtractMlaProfile:
    def test_fields(self, mla_html) -> None:
        p = extract_profile(mla_html, MLA)
        assert p.role == MLA
        assert p.name == "Atishi"
        assert p.image_url == "https://prsindia.org/files/mla-images/atishi.jpg"
        assert p.state == "Delhi"
        assert p.party == "Aam Aadmi Party"
        assert p.constituency == "Kalkaji"
        assert p.term_start == "Feb-2020"
        assert p.term_end == "Feb-2025"
        assert p.no_of_term == "2"
        assert p.membership == "Elected"
        assert p.age == "43"
        assert p.gender == "Female"
        assert p.education == "Post Graduate"

    def test_mla_has_no_metrics_or_tables(self, mla_html) -> None:
        p = extract_profile(mla_html, MLA)
        assert p.attendance == NOT_AVAILABLE
        assert p.pmb == NOT_AVAILABLE
        assert p.attendance_table == ""

    def test_affidavit_note(self, mla_html) -> None:
        p = extract_profile(mla_html, MLA)
        assert p.note == NOTE_AFFIDAVIT_SOURCE
        assert p.data_available is True

    def test_plain_heading_does_not_clear_data_available(self, mla_html) -> None:
        html = mla_html.replace("</main>", "<h4>Assets data not available</h4></main>")
        p = extract_profile(html, MLA)
        assert p.note == NOTE_AFFIDAVIT_SOURCE
        assert p.data_available is True

    def test_data_not_available_banner(self, make_mla_html) -> None:
        p = extract_profile(make_mla_html(data_not_available=True), MLA)
        assert p.note == NOTE_DATA_NOT_AVAILABLE
        assert p.data_available is False
        assert p.name == "Atishi"


# ── Output shape ─────────────────────────────────────────────────────────────


class TestProfileShape:
    def test_every_key_present_for_both_roles(self, mp_html, mla_html) -> None:
        for html, role in ((mp_html, MP), (mla_html, MLA)):
            data = extract_profile(html, role).to_dict()
            assert tuple(data) == PROFILE_KEYS
            assert data["type"] == role

    def test_garbage_page_still_fully_shaped(self) -> None:
        data = extract_profile("<html><body><p>nothing here</p></body></html>", MP).to_dict()
        assert tuple(data) == PROFILE_KEYS
        assert data["name"] == UNKNOWN
        assert data["imageUrl"] == ""
        assert data["attendance"] == NOT_AVAILABLE
        assert data["pmb"] == "0"
        assert data["dataAvailable"] is False
