"""
SourcingService: the entry point other code uses

Wires one BrowserController to the login, search, scrape and batch agents
from a Config. Close it (or use it as an async context manager) to shut the
browser down.
"""

import logging
from typing import List, Optional

from talent_scraper.agents.batch_agent import BatchScrapeAgent, ProgressCallback
from talent_scraper.agents.login_agent import LoginAgent
from talent_scraper.agents.scrape_agent import ScrapeAgent
from talent_scraper.agents.search_agent import SearchAgent
from talent_scraper.models import (
    AuthResult,
    ProfileDetail,
    ProfileSummary,
    SearchCriteria,
    SearchStatus,
    SessionState,
)
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.data_extractor import DataExtractor
from talent_scraper.scraper.diagnostics import DiagnosticsWriter
from talent_scraper.scraper.human_behavior import HumanBehavior
from talent_scraper.utils.config import Config

logger = logging.getLogger(__name__)


class SourcingService:
    """Search and scrape LinkedIn profiles over one shared session"""

    def __init__(self, config: Optional[Config] = None,
                 browser_controller: Optional[BrowserController] = None,
                 human_behavior: Optional[HumanBehavior] = None):
        self.config = config or Config()
        self.browser = browser_controller or BrowserController(**self.config.browser)
        self.human_behavior = human_behavior or HumanBehavior()

        scraping = self.config.scraping
        self.login_agent = LoginAgent(self.browser, human_behavior=self.human_behavior)
        self.search_agent = SearchAgent(
            self.browser,
            human_behavior=self.human_behavior,
            diagnostics=DiagnosticsWriter(self.config.export['diagnostics_path']),
        )
        self.scrape_agent = ScrapeAgent(
            self.browser,
            data_extractor=DataExtractor(),
            human_behavior=self.human_behavior,
            follow_detail_pages=scraping['follow_detail_pages'],
        )
        self.batch_agent = BatchScrapeAgent(
            self.browser,
            scrape_agent=self.scrape_agent,
            concurrency=scraping['concurrency'],
            item_timeout=scraping['item_timeout'],
        )

    async def __aenter__(self) -> 'SourcingService':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close_session()

    @property
    def session_state(self) -> SessionState:
        return self.browser.state

    @property
    def last_search_status(self) -> Optional[SearchStatus]:
        return self.search_agent.last_status

    async def ensure_authenticated(self, email: Optional[str] = None,
                                   password: Optional[str] = None) -> AuthResult:
        return await self.login_agent.login(
            email or self.config.LINKEDIN_EMAIL,
            password or self.config.LINKEDIN_PASSWORD,
        )

    async def force_relogin(self, email: Optional[str] = None,
                            password: Optional[str] = None) -> AuthResult:
        return await self.login_agent.force_relogin(
            email or self.config.LINKEDIN_EMAIL,
            password or self.config.LINKEDIN_PASSWORD,
        )

    async def search(self, criteria: SearchCriteria) -> List[ProfileSummary]:
        return await self.search_agent.search(criteria)

    async def scrape_profile(self, profile_url: str) -> ProfileDetail:
        return await self.scrape_agent.scrape_profile(profile_url)

    async def scrape_many(self, profile_urls: List[str],
                          concurrency: Optional[int] = None,
                          on_progress: Optional[ProgressCallback] = None) -> List[ProfileDetail]:
        return await self.batch_agent.scrape_many(
            profile_urls, concurrency=concurrency, on_progress=on_progress
        )

    async def close_session(self):
        await self.browser.close()
