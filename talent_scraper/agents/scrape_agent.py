"""
Scrape Agent: loads one LinkedIn profile in its own tab and extracts it
"""

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from talent_scraper.exceptions import (
    ChallengeRequired,
    NavigationTimeout,
    NotAuthenticated,
    ProfileNotFound,
)
from talent_scraper.models import ProfileDetail
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.data_extractor import DataExtractor, has_access_issue
from talent_scraper.scraper.human_behavior import HumanBehavior
from talent_scraper.utils.helpers import (
    canonical_profile_url,
    identity_from_url,
    is_challenge_url,
    is_login_url,
)

logger = logging.getLogger(__name__)


class ScrapeAgent:
    """Agent for scraping individual profiles"""

    MODAL_CLOSE = 'button[aria-label="Close"], button[aria-label="Dismiss"]'

    EXPANDERS = (
        'button.inline-show-more-text__button[aria-expanded="false"], '
        'button:has-text("See more"), '
        'button:has-text("Show more"), '
        'button:has-text("…see more")'
    )

    # section name -> path under /in/<identity>/details/
    DETAIL_PAGES = {
        'experience': 'experience',
        'education': 'education',
        'skills': 'skills',
        'languages': 'languages',
        'certifications': 'certifications',
    }

    def __init__(self, browser_controller: BrowserController,
                 data_extractor: Optional[DataExtractor] = None,
                 human_behavior: Optional[HumanBehavior] = None,
                 follow_detail_pages: bool = False,
                 settle_timeout: float = 10.0,
                 max_expand_passes: int = 3):
        """
        Args:
            browser_controller: shared session
            data_extractor: HTML parser for profile pages
            human_behavior: pacing helper
            follow_detail_pages: also open "show all" pages for long sections
            settle_timeout: seconds allowed for lazy sections to finish loading
            max_expand_passes: passes over "see more" buttons
        """
        self.browser = browser_controller
        self.extractor = data_extractor or DataExtractor()
        self.human_behavior = human_behavior or HumanBehavior()
        self.follow_detail_pages = follow_detail_pages
        self.settle_timeout = settle_timeout
        self.max_expand_passes = max_expand_passes

    async def scrape_profile(self, profile_url: str) -> ProfileDetail:
        """Scrape a single profile in a fresh tab"""
        url = canonical_profile_url(profile_url)
        if not url:
            raise ProfileNotFound("Not a LinkedIn profile URL", url=profile_url)

        await self.browser.require_authenticated()
        async with self.browser.open_tab() as page:
            return await self.extract_from_page(page, url)

    async def extract_from_page(self, page, profile_url: str) -> ProfileDetail:
        """
        Navigate page to profile_url and parse it

        Raises:
            NavigationTimeout: profile did not load in time
            NotAuthenticated / ChallengeRequired: redirected away from the profile
            ProfileNotFound: profile missing or hidden from this account
            ExtractionError: no name could be read
        """
        logger.info(f"Scraping profile: {profile_url}")
        await self.navigate(page, profile_url)

        if has_access_issue(await page.content()):
            logger.warning(f"[WARN] Profile not accessible: {profile_url}")
            raise ProfileNotFound("Profile is not available", url=profile_url)

        await self._dismiss_modals(page)
        try:
            await self.human_behavior.scroll_until_stable(page, timeout=self.settle_timeout)
        except PlaywrightError as e:
            logger.debug(f"Scrolling profile failed: {e}")
        await self._expand_all_sections(page)

        detail = self.extractor.extract_profile(await page.content(), profile_url)

        if self.follow_detail_pages:
            await self._merge_detail_pages(page, profile_url, detail)

        logger.info(f"[OK] Scraped {detail.full_name} ({detail.completeness}% complete)")
        return detail

    async def navigate(self, page, url: str):
        """goto with typed failures for timeouts and lost sessions"""
        try:
            await page.goto(url, wait_until='domcontentloaded')
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout("Page did not load in time", url=url) from e

        current = page.url
        if is_challenge_url(current):
            raise ChallengeRequired("Verification required while loading profile", url=current)
        if is_login_url(current):
            raise NotAuthenticated("Redirected to login while loading profile", url=current)
        if '/404' in current or (identity_from_url(url) and '/in/' not in current):
            raise ProfileNotFound("Profile page redirected away", url=url)

        try:
            await page.wait_for_selector('main', state='attached', timeout=10000)
        except PlaywrightTimeoutError:
            logger.debug(f"Main content not attached yet for {url}")
        await self.human_behavior.random_delay(1, 2)

    async def _dismiss_modals(self, page):
        try:
            buttons = await page.query_selector_all(self.MODAL_CLOSE)
            for button in buttons[:3]:
                try:
                    await button.click()
                    await self.human_behavior.random_delay(0.3, 0.8)
                except PlaywrightError as e:
                    logger.debug(f"Could not dismiss modal: {e}")
        except PlaywrightError as e:
            logger.debug(f"Error looking for modals: {e}")

    async def _expand_all_sections(self, page):
        """Click "see more" toggles until none are left or passes run out"""
        for attempt in range(1, self.max_expand_passes + 1):
            try:
                buttons = await page.query_selector_all(self.EXPANDERS)
            except PlaywrightError as e:
                logger.debug(f"Error looking for expanders: {e}")
                return
            logger.debug(f"Expansion pass {attempt}: {len(buttons)} toggles")
            if not buttons:
                return
            for button in buttons[:20]:
                try:
                    await button.scroll_into_view_if_needed()
                    await button.click()
                    await self.human_behavior.random_delay(0.2, 0.6)
                except PlaywrightError as e:
                    logger.debug(f"Could not expand section: {e}")

    async def _merge_detail_pages(self, page, profile_url: str, detail: ProfileDetail):
        """Replace truncated sections with the content of their "show all" page"""
        for name, path in self.DETAIL_PAGES.items():
            url = f'{profile_url}/details/{path}/'
            try:
                await self.navigate(page, url)
                await self.human_behavior.scroll_until_stable(page, timeout=self.settle_timeout)
            except (NavigationTimeout, ProfileNotFound, PlaywrightError) as e:
                logger.debug(f"Skipping {name} details page: {e}")
                continue

            items = self.extractor.extract_section_from_html(await page.content(), name)
            if items and len(items) >= len(getattr(detail, name)):
                setattr(detail, name, items)
                if name in detail.missing_sections:
                    detail.missing_sections.remove(name)
                logger.debug(f"{name}: {len(items)} entries from details page")
