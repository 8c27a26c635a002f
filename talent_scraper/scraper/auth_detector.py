"""
Authentication detection for the shared LinkedIn session

Fast path: look at where the primary page already is and whether the
signed-in navigation bar is rendered. Slow path: load the feed and see
whether LinkedIn bounces us to a login or checkpoint page.
"""

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from talent_scraper.utils.helpers import (
    BASE_URL,
    is_challenge_url,
    is_linkedin_url,
    is_login_url,
)

logger = logging.getLogger(__name__)


class AuthDetector:
    """Decides whether the current browser session is signed in"""

    FEED_URL = f'{BASE_URL}/feed/'

    NAV_MARKERS = (
        '.global-nav__content, '
        '#global-nav, '
        '.global-nav, '
        '[data-test-global-nav]'
    )

    def __init__(self, marker_timeout: int = 3000, navigation_timeout: int = 15000):
        """
        Args:
            marker_timeout: ms to wait for the nav bar on the fast path
            navigation_timeout: ms allowed for the feed navigation on the slow path
        """
        self.marker_timeout = marker_timeout
        self.navigation_timeout = navigation_timeout

    async def fast_check(self, page) -> Optional[bool]:
        """True/False when the current page is conclusive, None otherwise"""
        url = page.url
        if is_login_url(url) or is_challenge_url(url):
            logger.info(f"[AUTH] On sign-in/checkpoint page: {url}")
            return False
        if not is_linkedin_url(url):
            return None
        try:
            await page.wait_for_selector(
                self.NAV_MARKERS, state='attached', timeout=self.marker_timeout
            )
            return True
        except PlaywrightTimeoutError:
            return None

    async def slow_check(self, page) -> bool:
        logger.info("[AUTH] Loading feed to verify session...")
        try:
            await page.goto(
                self.FEED_URL, wait_until='domcontentloaded', timeout=self.navigation_timeout
            )
        except PlaywrightTimeoutError:
            logger.warning("[WARN] Feed navigation timed out during session check")
            return False
        except PlaywrightError as e:
            logger.warning(f"[WARN] Feed navigation failed during session check: {e}")
            return False

        final_url = page.url
        authenticated = not (is_login_url(final_url) or is_challenge_url(final_url))
        logger.info("[AUTH] Session active" if authenticated else f"[AUTH] Session expired ({final_url})")
        return authenticated

    async def detect(self, page) -> bool:
        result = await self.fast_check(page)
        if result is not None:
            return result
        return await self.slow_check(page)
