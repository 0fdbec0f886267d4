"""Shared pytest fixtures: synthetic PRS profile pages and an offline fetcher."""

from __future__ import annotations

import threading
import time

import pytest

from prs_track.config import BASE_URL, MP_SESSIONS
from prs_track.fetcher import PermanentFetchError

# ── Page builders ─────────────────────────────────────────────────────────────

_NAV = """
<header class="site-header">
  <nav class="main-menu">
    <ul>
      <li><a href="/billtrack">Bills</a></li>
      <li><a href="/parliamenttrack">Parliament</a></li>
      <li><a href="/mptrack">MPs</a></li>
      <li><a href="/mlatrack">MLAs</a></li>
      <li><a href="/budgets">Budgets</a></li>
      <li><a href="/policy">Policy</a></li>
    </ul>
  </nav>
</header>
"""

_FOOTER = """
<footer class="site-footer">
  <p>PRS Legislative Research, Institute for Policy Research Studies.</p>
  <p>Data on this page is compiled from Lok Sabha and Vidhan Sabha records.</p>
</footer>
"""

_MP_NAME_BLOCK = """
    <div class="mp-name"><h1><a href="/mptrack/18th-lok-sabha/rahul-gandhi">{name}</a></h1></div>
"""

_MP_PERFORMANCE = """
<div class="mp-parliamentary-performance">
  <div class="mp-attendance">
    <h3>Attendance</h3>
    <div class="field-name-field-attendance"><div class="field-item">51%</div></div>
    <div class="field-name-field-national-attendance"><div class="field-item">79%</div></div>
    <div class="field-name-field-state-attendance"><div class="field-item">82%</div></div>
  </div>
  <div class="mp-debate">
    <h3>Debates</h3>
    <div class="field-name-field-author"><div class="field-item">8</div></div>
    <div class="field-name-field-national-debate"><div class="field-item">45.2</div></div>
    <div class="field-name-field-state-debate"><div class="field-item">39.1</div></div>
  </div>
  <div class="mp-questions">
    <h3>Questions</h3>
    <div class="field-name-field-total-expenses-railway"><div class="field-item">99</div></div>
    <div class="field-name-field-national-questions"><div class="field-item">130.6</div></div>
    <div class="field-name-field-state-questions"><div class="field-item">140.2</div></div>
  </div>
  <div class="mp-pmb">
    <h3>Private Member Bills</h3>
    <div class="field-name-field-source"><div class="field-item">2</div></div>
    <div class="field-name-field-national-pmb"><div class="field-item">1.2</div></div>
    <div class="field-name-field-state-pmb"><div class="field-item">0.9</div></div>
  </div>
</div>
"""

_MP_TABLES = """
<div id="block-views-mps-attendance-block">
  <table>
    <thead><tr><th>Session</th><th>Attendance</th></tr></thead>
    <tbody><tr><td>Budget Session 2025</td><td>58%</td></tr></tbody>
  </table>
</div>
<div id="block-views-mps-debate-related-views-block">
  <table>
    <tr><th>Date</th><th>Title</th><th>Debate Type</th></tr>
    <tr><td>02-Jul-2024</td><td>Motion of Thanks</td><td>Discussion</td></tr>
  </table>
</div>
<div id="block-views-mp-related-views-block-2222">
  <table>
    <tr><th>Date</th><th>Title</th><th>Type</th><th>Ministry</th></tr>
    <tr><td>29-Jul-2024</td><td>Status of NEET</td><td>Starred</td><td>Education</td></tr>
  </table>
</div>
"""


def build_mp_page(
    name: str | None = "Rahul Gandhi",
    *,
    performance: str | None = None,
    tables: str | None = None,
) -> str:
    """A realistic MP profile page; ``name=None`` leaves the name block out."""
    name_block = _MP_NAME_BLOCK.format(name=name) if name is not None else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head><title>MP Track | PRS Legislative Research</title></head>
<body>
{_NAV}
<main>
  <div class="mp_profile_header_info">
    {name_block}
    <div class="field-name-field-image">
      <img src="/sites/default/files/mp-images/rahul-gandhi.jpg" alt="photo">
    </div>
    <div class="mp_state">
      <span class="field-label">State</span>
      <a href="/mptrack?state=uttar-pradesh">Uttar Pradesh (79 more MPs)</a>
    </div>
    <div class="mp_state">
      <span class="field-label">Party</span>
      <a href="/mptrack?party=inc">Indian National Congress (98 more MPs)</a>
    </div>
    <div class="mp_constituency">Constituency : Rae Bareli</div>
    <div class="mp-basic-info">
      <div class="term_start">
        <span class="field-label">Start of Term :</span>
        <div class="field-name-field-date-of-introduction"><div class="field-item">04-Jun-2024</div></div>
      </div>
      <div class="term_end">End of Term : In Office</div>
      <div><span class="field-label">No. of Term :</span> 5</div>
      <div><span class="field-label">Nature of membership :</span> Elected</div>
    </div>
  </div>
  <div class="personal_profile_parent">
    <div class="gender"><span class="field-label">Age :</span> 54</div>
    <div class="gender"><span class="field-label">Gender :</span><a href="#">Male</a></div>
    <div class="education"><span class="field-label">Education :</span><a href="#">Post Graduate</a></div>
  </div>
  {_MP_PERFORMANCE if performance is None else performance}
  {_MP_TABLES if tables is None else tables}
</main>
{_FOOTER}
</body>
</html>
"""


def build_mla_page(name: str = "Atishi", *, data_not_available: bool = False) -> str:
    banner = (
        '<div class="text-center"><h3>Data not available</h3></div>' if data_not_available else ""
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head><title>MLA Track | PRS Legislative Research</title></head>
<body>
{_NAV}
<main>
  <div class="mla-profile">
    <div class="mla-name">
      <h3><div class="field-name-title-field"><div class="field-item">{name}</div></div></h3>
    </div>
    <div class="field-name-field-mla-profile-image">
      <img src="https://prsindia.org/files/mla-images/atishi.jpg" alt="photo">
    </div>
    <div class="mla_state">
      <span class="field-label">State</span>
      <a href="/mlatrack?state=delhi">Delhi (69 more MLAs)</a>
    </div>
    <div class="mla_state">
      <span class="field-label">Party</span>
      <a href="/mlatrack?party=aap">Aam Aadmi Party</a>
    </div>
    <div class="mp_constituency">
      <div class="field-name-field-mla-constituency"><div class="field-item">Kalkaji</div></div>
    </div>
    <div class="term_end">
      <span class="field-label">Start Of Term</span><div class="field-item">Feb-2020</div>
    </div>
    <div class="term_end">
      <span class="field-label">End Of Term</span><div class="field-item">Feb-2025</div>
    </div>
    <div class="mp-basic-info">
      <div><span class="field-label">No. of Term :</span> 2</div>
    </div>
    <div class="membership">
      <div class="field-name-field-membership"><div class="field-item">Elected</div></div>
    </div>
  </div>
  <div class="personal_profile_parent">
    <div class="age">
      <div class="field-name-field-mla-age"><div class="field-item">43</div></div>
    </div>
    <div class="gender"><span class="field-label">Gender :</span><a href="#">Female</a></div>
    <div class="education"><a href="#">Post Graduate</a></div>
  </div>
  {banner}
</main>
{_FOOTER}
</body>
</html>
"""


def mp_url(slug: str, session: str | None = None) -> str:
    return f"{BASE_URL}/mptrack/{session or MP_SESSIONS[0]}/{slug}"


def mla_url(slug: str) -> str:
    return f"{BASE_URL}/mlatrack/{slug}"


# ── Offline fetcher ───────────────────────────────────────────────────────────


class FakeFetcher:
    """Serves canned pages by URL; unknown URLs fail like a 404.

    Tracks every URL requested and the peak number of concurrent fetches.
    """

    def __init__(
        self,
        pages: dict[str, str] | None = None,
        *,
        delay: float = 0.0,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.delay = delay
        self.delays = dict(delays or {})
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()

    def fetch(self, url: str) -> str:
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            pause = self.delays.get(url, self.delay)
            if pause:
                time.sleep(pause)
            if url not in self.pages:
                raise PermanentFetchError(url, "HTTP 404")
            return self.pages[url]
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self) -> None:
        self.closed = True


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def mp_html() -> str:
    return build_mp_page()


@pytest.fixture
def mla_html() -> str:
    return build_mla_page()


@pytest.fixture
def make_mp_html():
    return build_mp_page


@pytest.fixture
def make_mla_html():
    return build_mla_page


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher


@pytest.fixture
def mp_url_for():
    return mp_url


@pytest.fixture
def mla_url_for():
    return mla_url
