from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

MP = "MP"
MLA = "MLA"
ROLES: tuple[str, ...] = (MP, MLA)

UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"

NOTE_DATA_NOT_AVAILABLE = "Data not available"
NOTE_AFFIDAVIT_SOURCE = "Member data is taken from the election affidavits"


def normalize_role(raw: str) -> str:
    """Upper-case and validate a role string (``"mp"`` -> ``"MP"``)."""
    role = (raw or "").strip().upper()
    if role not in ROLES:
        raise ValueError(f"role must be one of {ROLES}, got {raw!r}")
    return role


def opposite_role(role: str) -> str:
    if role == MP:
        return MLA
    if role == MLA:
        return MP
    raise ValueError(f"role must be one of {ROLES}, got {role!r}")


@dataclass(frozen=True)
class NameQuery:
    name: str
    role: str  # "MP" or "MLA"
    constituency: str | None = None  # advisory only
    state: str | None = None  # advisory only


@dataclass(frozen=True)
class SlugCandidate:
    slug: str  # e.g. "rahul-gandhi"
    label: str  # "full", "first-last", "skip-middle", "middle-initial", ...


@dataclass(frozen=True)
class CandidateURL:
    url: str
    slug: str
    suffix: str  # "", "-1", "-2", "-3"
    tier: int
    index: int  # position in the builder's ordered output
    session: str | None = None  # MP only, e.g. "18th-lok-sabha"


class ProbeStatus(Enum):
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass
class MemberProfile:
    role: str = UNKNOWN
    # Identity
    name: str = UNKNOWN
    image_url: str = ""
    state: str = UNKNOWN
    constituency: str = UNKNOWN
    party: str = UNKNOWN
    # Term
    term_start: str = NOT_AVAILABLE
    term_end: str = NOT_AVAILABLE
    no_of_term: str = NOT_AVAILABLE
    membership: str = NOT_AVAILABLE
    # Personal
    age: str = NOT_AVAILABLE
    gender: str = NOT_AVAILABLE
    education: str = NOT_AVAILABLE
    # Performance: own / national average / state average
    attendance: str = NOT_AVAILABLE
    nat_attendance: str = NOT_AVAILABLE
    state_attendance: str = NOT_AVAILABLE
    debates: str = NOT_AVAILABLE
    nat_debates: str = NOT_AVAILABLE
    state_debates: str = NOT_AVAILABLE
    questions: str = NOT_AVAILABLE
    nat_questions: str = NOT_AVAILABLE
    state_questions: str = NOT_AVAILABLE
    pmb: str = NOT_AVAILABLE
    nat_pmb: str = NOT_AVAILABLE
    state_pmb: str = NOT_AVAILABLE
    # Raw HTML activity tables
    attendance_table: str = ""
    debates_table: str = ""
    questions_table: str = ""
    note: str = ""
    data_available: bool = False

    @classmethod
    def empty(cls) -> MemberProfile:
        """The all-sentinel profile returned when nothing resolves."""
        return cls()

    @property
    def is_resolved(self) -> bool:
        return bool(self.name) and self.name != UNKNOWN

    def to_dict(self) -> dict[str, str | bool]:
        """Serialize with the wire (camelCase) key names; every key is always present."""
        return {_WIRE_NAMES.get(f.name, f.name): getattr(self, f.name) for f in fields(self)}


_WIRE_NAMES: dict[str, str] = {
    "role": "type",
    "image_url": "imageUrl",
    "term_start": "termStart",
    "term_end": "termEnd",
    "no_of_term": "noOfTerm",
    "nat_attendance": "natAttendance",
    "state_attendance": "stateAttendance",
    "nat_debates": "natDebates",
    "state_debates": "stateDebates",
    "nat_questions": "natQuestions",
    "state_questions": "stateQuestions",
    "nat_pmb": "natPMB",
    "state_pmb": "statePMB",
    "attendance_table": "attendanceTable",
    "debates_table": "debatesTable",
    "questions_table": "questionsTable",
    "data_available": "dataAvailable",
}

PROFILE_KEYS: tuple[str, ...] = tuple(
    _WIRE_NAMES.get(f.name, f.name) for f in fields(MemberProfile)
)


@dataclass
class ProbeOutcome:
    candidate: CandidateURL
    status: ProbeStatus
    reason: str = ""  # "fetch-failed", "rejected", "unresolved-name", "parse-error"
    profile: MemberProfile | None = None
    duration_s: float = 0.0

    @property
    def url(self) -> str:
        return self.candidate.url


@dataclass
class PassReport:
    """Telemetry for one role pass through the probe scheduler."""

    role: str
    reduced: bool = False
    candidates: int = 0
    tiers_total: int = 0
    tiers_probed: int = 0
    urls_checked: list[str] = field(default_factory=list)
    outcomes: list[ProbeOutcome] = field(default_factory=list)
    hit: ProbeOutcome | None = None
    elapsed_s: float = 0.0

    @property
    def found(self) -> bool:
        return self.hit is not None

    def summary(self) -> dict:
        return {
            "role": self.role,
            "reduced": self.reduced,
            "candidates": self.candidates,
            "tiersTotal": self.tiers_total,
            "tiersProbed": self.tiers_probed,
            "urlsChecked": len(self.urls_checked),
            "found": self.found,
            "elapsedSeconds": round(self.elapsed_s, 3),
        }


@dataclass(frozen=True)
class ResolutionResult:
    query: NameQuery
    profile: MemberProfile
    found: bool
    searched_as: str
    found_as: str | None = None
    source_url: str | None = None
    urls_checked: tuple[str, ...] = ()
    passes: tuple[PassReport, ...] = ()

    @property
    def total_urls_checked(self) -> int:
        return len(self.urls_checked)

    @property
    def role_switched(self) -> bool:
        return self.found and self.found_as != self.searched_as

    def to_dict(self) -> dict:
        return {
            "found": self.found,
            "searchedAs": self.searched_as,
            "foundAs": self.found_as,
            "sourceUrl": self.source_url,
            "data": self.profile.to_dict(),
            "urlsChecked": list(self.urls_checked),
            "totalUrlsChecked": self.total_urls_checked,
            "passes": [p.summary() for p in self.passes],
        }
