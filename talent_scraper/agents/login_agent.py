"""
Login Agent: signs the shared browser session into LinkedIn
"""

import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from talent_scraper.exceptions import (
    ChallengeRequired,
    InvalidCredentials,
    NavigationTimeout,
    SessionUnavailable,
)
from talent_scraper.models import AuthResult
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.scraper.human_behavior import HumanBehavior
from talent_scraper.scraper.waits import poll_until
from talent_scraper.utils.helpers import BASE_URL, is_challenge_url, is_login_url

logger = logging.getLogger(__name__)


class LoginAgent:
    """Agent for the username/password login form"""

    LOGIN_URL = f'{BASE_URL}/login'

    def __init__(self, browser_controller: BrowserController,
                 human_behavior: Optional[HumanBehavior] = None,
                 submit_timeout: float = 20.0,
                 poll_interval: float = 0.5):
        self.browser = browser_controller
        self.human_behavior = human_behavior or HumanBehavior()
        self.submit_timeout = submit_timeout
        self.poll_interval = poll_interval

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Make sure the session is signed in

        Returns ALREADY_AUTHENTICATED without opening the login page when the
        session is already signed in.

        Raises:
            InvalidCredentials: credentials missing or rejected
            ChallengeRequired: LinkedIn asked for a verification step
            NavigationTimeout: the login page did not load
        """
        if not email or not password:
            logger.error("[X] LinkedIn credentials not configured")
            logger.error("   Set LINKEDIN_EMAIL and LINKEDIN_PASSWORD in .env file")
            raise InvalidCredentials("LinkedIn credentials are missing")

        if await self.browser.check_authenticated():
            logger.info("[OK] Already logged in")
            return AuthResult.ALREADY_AUTHENTICATED

        return await self._submit_credentials(email, password)

    async def force_relogin(self, email: str, password: str) -> AuthResult:
        """Drop the current cookies and go through the login form again"""
        if not email or not password:
            raise InvalidCredentials("LinkedIn credentials are missing")

        logger.info("[AUTH] Forcing a fresh login...")
        async with self.browser.lease() as handle:
            await handle.context.clear_cookies()
        self.browser.mark_authenticated(False)
        return await self._submit_credentials(email, password)

    async def _submit_credentials(self, email: str, password: str) -> AuthResult:
        logger.info("[LOCK] Attempting LinkedIn login...")
        async with self.browser.lease() as handle:
            page = handle.page
            try:
                await page.goto(self.LOGIN_URL, wait_until='domcontentloaded')
            except PlaywrightTimeoutError as e:
                raise NavigationTimeout("Login page did not load", url=self.LOGIN_URL) from e
            except PlaywrightError as e:
                raise SessionUnavailable(f"Login page navigation failed: {e}") from e

            await self.human_behavior.human_type(page, '#username', email)
            await self.human_behavior.random_delay(0.5, 1.2)
            await self.human_behavior.human_type(page, '#password', password)
            await self.human_behavior.random_delay(0.5, 1.2)
            await page.click('button[type="submit"]')

            await poll_until(
                lambda: not is_login_url(page.url),
                timeout=self.submit_timeout,
                interval=self.poll_interval,
            )
            final_url = page.url

        if is_challenge_url(final_url):
            self.browser.mark_authenticated(False)
            logger.warning(f"[LOCK] Security verification required: {final_url}")
            raise ChallengeRequired(
                "LinkedIn requires a verification step; complete it in the browser",
                url=final_url,
            )
        if is_login_url(final_url):
            self.browser.mark_authenticated(False)
            logger.error("[X] Login rejected, still on the login page")
            raise InvalidCredentials("LinkedIn rejected the credentials", url=final_url)

        self.browser.mark_authenticated(True)
        logger.info("[OK] Login successful")
        return AuthResult.SUCCESS
