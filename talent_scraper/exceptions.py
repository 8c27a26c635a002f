"""
Typed failures raised by the scraping core

Session-level errors (NotAuthenticated, ChallengeRequired) are meant to reach
the caller, which owns retry policy and the human login step. Per-profile
errors are contained by the batch agent.
"""

from typing import List, Optional


class ScraperError(Exception):
    """Base class for all scraper errors"""

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(message)
        self.url = url
        # Filled in by the batch agent when a run is aborted
        self.partial_results: List = []


class SessionUnavailable(ScraperError):
    """Browser process could not be started"""


class NotAuthenticated(ScraperError):
    """Authenticated operation attempted without a valid session"""


class InvalidCredentials(ScraperError):
    """Login form rejected the credentials"""


class ChallengeRequired(ScraperError):
    """Verification checkpoint reached; needs a human, never retried"""


class NavigationTimeout(ScraperError):
    """Page did not load within the navigation timeout"""


class ProfileNotFound(ScraperError):
    """Profile does not exist or is not visible to this account"""


class ExtractionError(ScraperError):
    """Page loaded but the identity block could not be parsed"""
