"""
Search Agent: finds LinkedIn people matching a keyword and optional location
"""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from talent_scraper.exceptions import ChallengeRequired, NavigationTimeout, NotAuthenticated
from talent_scraper.models import ProfileSummary, SearchCriteria, SearchStatus
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.diagnostics import DiagnosticsWriter
from talent_scraper.scraper.human_behavior import HumanBehavior
from talent_scraper.scraper.search_parser import has_no_results_marker, parse_search_results
from talent_scraper.utils.helpers import build_search_url, is_challenge_url, is_login_url

logger = logging.getLogger(__name__)


class SearchAgent:
    """Agent for the people-search results page"""

    RESULTS_CONTAINER = (
        '.search-results-container, '
        '.reusable-search__entity-result-list, '
        'ul.reusable-search__entity-result-list, '
        'div.search-results'
    )

    LOCATION_BUTTONS = [
        'button:has-text("Locations")',
        'button:has-text("Localidades")',
        'button[aria-label*="Locations"]',
    ]
    LOCATION_INPUTS = [
        'input[placeholder="Add a location"]',
        'input[aria-label="Add a location"]',
        'input[placeholder="Adicionar localidade"]',
        'input[aria-label*="location"]',
        '.artdeco-typeahead__input',
    ]
    LOCATION_SUGGESTION = '.basic-typeahead__selectable-option'
    APPLY_BUTTONS = [
        'button:has-text("Show results")',
        'button:has-text("Apply")',
        'button:has-text("Exibir resultados")',
        'button:has-text("Aplicar")',
    ]

    def __init__(self, browser_controller: BrowserController,
                 human_behavior: Optional[HumanBehavior] = None,
                 diagnostics: Optional[DiagnosticsWriter] = None,
                 location_timeout: float = 20.0,
                 settle_timeout: float = 10.0,
                 results_timeout: int = 10000):
        """
        Args:
            browser_controller: shared session
            human_behavior: pacing helper
            diagnostics: where to save pages that yield nothing
            location_timeout: seconds allowed for the interactive location filter
            settle_timeout: seconds allowed for scrolling until the page stops growing
            results_timeout: ms to wait for the results container
        """
        self.browser = browser_controller
        self.human_behavior = human_behavior or HumanBehavior()
        self.diagnostics = diagnostics or DiagnosticsWriter()
        self.location_timeout = location_timeout
        self.settle_timeout = settle_timeout
        self.results_timeout = results_timeout
        self.last_status: Optional[SearchStatus] = None

    async def search(self, criteria: SearchCriteria) -> List[ProfileSummary]:
        """
        Run a people search and return at most criteria.max_results summaries

        An empty list is a normal outcome; last_status tells whether LinkedIn
        said "no results" or the markup could not be read.

        Raises:
            NotAuthenticated / ChallengeRequired: redirected away from search
            NavigationTimeout: the results page did not load
        """
        self.last_status = None
        await self.browser.require_authenticated()
        logger.info(f"Searching for profiles: '{criteria.keyword}'"
                    + (f" in '{criteria.location}'" if criteria.location else ""))

        async with self.browser.lease() as handle:
            page = handle.page
            await self._open_results(page, build_search_url(criteria.keyword))

            if criteria.location:
                if not await self._apply_location(page, criteria.location):
                    logger.warning("[WARN] Location filter unavailable, adding location to keywords")
                    folded = f'{criteria.keyword} {criteria.location}'
                    await self._open_results(page, build_search_url(folded))

            await self._load_all_results(page)
            html = await page.content()

            summaries = parse_search_results(html)[:criteria.max_results]
            if summaries:
                self.last_status = SearchStatus.RESULTS
                logger.info(f"[OK] Search completed: {len(summaries)} profiles")
                return summaries

            if has_no_results_marker(html):
                self.last_status = SearchStatus.NO_RESULTS
                logger.info("[INFO] LinkedIn reports no results for this search")
                return []

            self.last_status = SearchStatus.EXTRACTION_EMPTY
            logger.warning("[WARN] Results page loaded but no profiles could be read")
            await self.diagnostics.capture(page, f'search_{criteria.keyword}')
            return []

    async def _open_results(self, page, url: str):
        try:
            await page.goto(url, wait_until='domcontentloaded')
        except PlaywrightTimeoutError as e:
            logger.error(f"[X] Search page timed out: {url}")
            raise NavigationTimeout("Search page did not load in time", url=url) from e

        current = page.url
        if is_challenge_url(current):
            self.browser.mark_stale()
            raise ChallengeRequired("Verification required during search", url=current)
        if is_login_url(current):
            self.browser.mark_stale()
            raise NotAuthenticated("Redirected to login during search", url=current)

        try:
            await page.wait_for_selector(self.RESULTS_CONTAINER, state='attached',
                                         timeout=self.results_timeout)
        except PlaywrightTimeoutError:
            logger.debug("Results container not found, parsing whatever rendered")
        await self.human_behavior.random_delay(1, 2)

    async def _apply_location(self, page, location: str) -> bool:
        try:
            return await asyncio.wait_for(self._location_filter(page, location),
                                          timeout=self.location_timeout)
        except asyncio.TimeoutError:
            logger.debug("Location filter timed out")
        except PlaywrightError as e:
            logger.debug(f"Location filter failed: {e}")
        return False

    async def _location_filter(self, page, location: str) -> bool:
        button = await self._first_present(page, self.LOCATION_BUTTONS)
        if button is None:
            return False
        await button.click()
        await self.human_behavior.random_delay(0.5, 1)

        input_selector = None
        for selector in self.LOCATION_INPUTS:
            try:
                await page.wait_for_selector(selector, state='visible', timeout=3000)
                input_selector = selector
                break
            except PlaywrightTimeoutError:
                continue
        if input_selector is None:
            return False

        await self.human_behavior.human_type(page, input_selector, location)
        try:
            suggestion = await page.wait_for_selector(self.LOCATION_SUGGESTION, timeout=3000)
            await suggestion.click()
        except PlaywrightTimeoutError:
            await page.keyboard.press('Enter')
        await self.human_behavior.random_delay(0.5, 1)

        apply = await self._first_present(page, self.APPLY_BUTTONS)
        if apply is None:
            return False
        await apply.click()
        await page.wait_for_load_state('domcontentloaded')
        await self.human_behavior.random_delay(1, 2)
        logger.info(f"[OK] Location filter applied: {location}")
        return True

    @staticmethod
    async def _first_present(page, selectors: List[str]):
        for selector in selectors:
            el = await page.query_selector(selector)
            if el is not None:
                return el
        return None

    async def _load_all_results(self, page):
        try:
            if not await self.human_behavior.scroll_until_stable(page, timeout=self.settle_timeout):
                logger.debug("Search results still growing when scrolling stopped")
        except PlaywrightError as e:
            logger.debug(f"Scrolling search results failed: {e}")
