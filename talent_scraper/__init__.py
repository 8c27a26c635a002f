"""LinkedIn talent sourcing: shared signed-in session, search and profile scraping"""

from talent_scraper.exceptions import (
    ChallengeRequired,
    ExtractionError,
    InvalidCredentials,
    NavigationTimeout,
    NotAuthenticated,
    ProfileNotFound,
    ScraperError,
    SessionUnavailable,
)
from talent_scraper.models import (
    AuthResult,
    ProfileDetail,
    ProfileSummary,
    SearchCriteria,
    SearchStatus,
    SessionState,
)
from talent_scraper.service import SourcingService

__version__ = '0.1.0'
