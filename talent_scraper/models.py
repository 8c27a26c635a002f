"""
Data models for search summaries, profile details and batch bookkeeping
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
import time

from talent_scraper.utils.helpers import identity_from_url


class SessionState(str, Enum):
    ABSENT = "absent"
    ACTIVE_UNAUTHENTICATED = "active_unauthenticated"
    ACTIVE_AUTHENTICATED = "active_authenticated"


class AuthResult(str, Enum):
    """Successful outcomes of the login flow; failures are exceptions"""

    SUCCESS = "success"
    ALREADY_AUTHENTICATED = "already_authenticated"


class SearchStatus(str, Enum):
    RESULTS = "results"
    NO_RESULTS = "no_results"
    EXTRACTION_EMPTY = "extraction_empty"


@dataclass
class SessionHandle:
    """Live browser process plus its primary page"""

    playwright: Any
    browser: Any
    context: Any
    page: Any
    is_authenticated: bool = False
    last_activity_at: float = field(default_factory=time.monotonic)
    validated_at: Optional[float] = None

    def touch(self) -> None:
        self.last_activity_at = time.monotonic()

    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_activity_at

    def is_alive(self) -> bool:
        try:
            return bool(self.browser.is_connected())
        except Exception:
            return False


@dataclass(frozen=True)
class SearchCriteria:
    keyword: str
    location: Optional[str] = None
    max_results: int = 10

    def __post_init__(self):
        if not self.keyword or not self.keyword.strip():
            raise ValueError("keyword must not be empty")
        if self.max_results < 1:
            raise ValueError("max_results must be at least 1")


@dataclass
class ProfileSummary:
    display_name: str
    headline: str
    profile_url: str
    location: Optional[str] = None
    photo_url: Optional[str] = None
    summary: Optional[str] = None

    @property
    def identity_id(self) -> str:
        return identity_from_url(self.profile_url)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['identity_id'] = self.identity_id
        return d


@dataclass
class DateRange:
    start: Optional[str] = None
    end: Optional[str] = None
    duration: Optional[str] = None
    is_current: bool = False


@dataclass
class ExperienceEntry:
    title: str
    company: str = ""
    company_url: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration: Optional[str] = None
    is_current: bool = False
    employment_type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class EducationEntry:
    school: str
    school_url: Optional[str] = None
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: Optional[str] = None


@dataclass
class CertificationEntry:
    name: str
    issuer: Optional[str] = None
    issuer_url: Optional[str] = None
    issued_date: Optional[str] = None
    expiration_date: Optional[str] = None
    credential_id: Optional[str] = None
    credential_url: Optional[str] = None


@dataclass
class ProfileDetail:
    """Structured profile; identity_id always comes from profile_url"""

    profile_url: str
    full_name: str
    headline: str = ""
    location: str = ""
    photo_url: Optional[str] = None
    banner_url: Optional[str] = None
    about: str = ""
    experience: List[ExperienceEntry] = field(default_factory=list)
    education: List[EducationEntry] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    certifications: List[CertificationEntry] = field(default_factory=list)
    missing_sections: List[str] = field(default_factory=list)
    scraped_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def identity_id(self) -> str:
        return identity_from_url(self.profile_url)

    @property
    def completeness(self) -> int:
        """Share of core fields that are filled (0-100)"""
        fields = [
            self.full_name,
            self.headline,
            self.location,
            self.about,
            self.experience,
            self.education,
            self.skills,
        ]
        filled = sum(1 for f in fields if f)
        return int(filled / len(fields) * 100)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['identity_id'] = self.identity_id
        d['completeness'] = self.completeness
        return d


@dataclass
class ScrapeJob:
    target_urls: List[str]
    concurrency_limit: int

    def __post_init__(self):
        if self.concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")

    def batches(self) -> Iterator[List[str]]:
        size = self.concurrency_limit
        for i in range(0, len(self.target_urls), size):
            yield self.target_urls[i:i + size]


@dataclass
class ScrapeProgress:
    completed: int
    total: int
    profile_url: str
    success: bool
    error: Optional[str] = None
