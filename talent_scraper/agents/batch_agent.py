"""
Batch Scrape Agent: scrapes many profiles over a bounded pool of tabs

Profiles are processed in fixed-size batches; every profile in a batch gets
its own tab and the batch finishes before the next one starts, so the number
of open tabs never exceeds the concurrency limit.
"""

import asyncio
import inspect
import logging
import random
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from talent_scraper.exceptions import (
    ChallengeRequired,
    NavigationTimeout,
    NotAuthenticated,
    ScraperError,
)
from talent_scraper.models import ProfileDetail, ScrapeJob, ScrapeProgress
from talent_scraper.agents.scrape_agent import ScrapeAgent
from talent_scraper.scraper.browser_controller import BrowserController
from talent_scraper.utils.helpers import canonical_profile_url

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScrapeProgress], Union[None, Awaitable[None]]]

SESSION_ERRORS = (NotAuthenticated, ChallengeRequired)


class BatchScrapeAgent:
    """Fans profile extraction out across isolated tabs"""

    def __init__(self, browser_controller: BrowserController,
                 scrape_agent: Optional[ScrapeAgent] = None,
                 concurrency: int = 3,
                 item_timeout: float = 120.0,
                 stagger: float = 1.5,
                 jitter: float = 1.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        Args:
            browser_controller: shared session
            scrape_agent: per-tab profile routine
            concurrency: default number of tabs per batch
            item_timeout: seconds one profile may take, retries included
            stagger: seconds of delay per position within a batch
            jitter: upper bound of the random delay added to the stagger
            sleep: coroutine used for the start delays
        """
        self.browser = browser_controller
        self.scraper = scrape_agent or ScrapeAgent(browser_controller)
        self.concurrency = concurrency
        self.item_timeout = item_timeout
        self.stagger = stagger
        self.jitter = jitter
        self._sleep = sleep

    async def scrape_many(self, profile_urls: List[str],
                          concurrency: Optional[int] = None,
                          on_progress: Optional[ProgressCallback] = None,
                          item_timeout: Optional[float] = None) -> List[ProfileDetail]:
        """
        Scrape every URL and return the successful details in input order

        Per-profile failures are logged, reported through on_progress and
        left out of the result.

        Raises:
            NotAuthenticated / ChallengeRequired: the session was lost; no
                further batches run and the exception's partial_results holds
                everything scraped before that
        """
        concurrency = concurrency or self.concurrency
        item_timeout = self.item_timeout if item_timeout is None else item_timeout

        urls, invalid = self._normalize(profile_urls)
        job = ScrapeJob(target_urls=urls, concurrency_limit=concurrency)
        total = len(urls) + len(invalid)
        completed = 0
        results: List[ProfileDetail] = []

        async def report(url: str, success: bool, error: Optional[str] = None):
            nonlocal completed
            completed += 1
            if on_progress is None:
                return
            progress = ScrapeProgress(completed=completed, total=total,
                                      profile_url=url, success=success, error=error)
            try:
                outcome = on_progress(progress)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning(f"[WARN] Progress callback failed: {e}")

        for url in invalid:
            logger.warning(f"[WARN] Skipping invalid profile URL: {url}")
            await report(url, False, "invalid profile URL")

        if not urls:
            return results

        await self.browser.require_authenticated()
        logger.info(f"Scraping {len(urls)} profiles with {concurrency} tabs")

        stop = asyncio.Event()
        session_error: Optional[ScraperError] = None

        for number, batch in enumerate(job.batches(), 1):
            if stop.is_set():
                break
            logger.info(f"Batch {number}: {len(batch)} profiles")
            outcomes = await asyncio.gather(
                *(self._run_item(url, position, stop, item_timeout)
                  for position, url in enumerate(batch)),
                return_exceptions=True,
            )

            for url, outcome in zip(batch, outcomes):
                if isinstance(outcome, ProfileDetail):
                    results.append(outcome)
                    await report(url, True)
                elif outcome is None:
                    await report(url, False, "skipped after session loss")
                elif isinstance(outcome, SESSION_ERRORS):
                    session_error = session_error or outcome
                    logger.error(f"[X] Session lost on {url}: {outcome}")
                    await report(url, False, str(outcome))
                elif isinstance(outcome, Exception):
                    logger.error(f"[X] Failed to scrape {url}: {type(outcome).__name__}: {outcome}")
                    await report(url, False, str(outcome) or type(outcome).__name__)
                else:
                    raise outcome

        if session_error is not None:
            self.browser.mark_stale()
            session_error.partial_results = list(results)
            logger.error(f"[X] Stopped after session loss: {len(results)} profiles scraped")
            raise session_error

        logger.info(f"Scraping completed: {len(results)}/{total} successful")
        return results

    @staticmethod
    def _normalize(profile_urls: List[str]) -> Tuple[List[str], List[str]]:
        """Canonical, de-duplicated URLs plus the inputs that are not profiles"""
        urls: List[str] = []
        invalid: List[str] = []
        seen = set()
        for raw in profile_urls:
            url = canonical_profile_url(raw)
            if url is None:
                invalid.append(raw)
            elif url not in seen:
                seen.add(url)
                urls.append(url)
        return urls, invalid

    async def _run_item(self, url: str, position: int, stop: asyncio.Event,
                        item_timeout: float) -> Optional[ProfileDetail]:
        await self._sleep(position * self.stagger + random.uniform(0, self.jitter))
        if stop.is_set():
            logger.info(f"Skipping {url}, session lost")
            return None

        try:
            return await asyncio.wait_for(self._scrape_with_retry(url, stop), timeout=item_timeout)
        except asyncio.TimeoutError:
            raise ScraperError(f"Timed out after {item_timeout}s", url=url)
        except SESSION_ERRORS:
            stop.set()
            raise

    async def _scrape_with_retry(self, url: str, stop: asyncio.Event) -> Optional[ProfileDetail]:
        try:
            return await self._scrape_in_tab(url, stop)
        except NavigationTimeout:
            if stop.is_set():
                raise
            logger.warning(f"[WARN] Navigation timed out, retrying in a fresh tab: {url}")
        return await self._scrape_in_tab(url, stop)

    async def _scrape_in_tab(self, url: str, stop: asyncio.Event) -> Optional[ProfileDetail]:
        async with self.browser.open_tab() as page:
            if stop.is_set():
                return None
            return await self.scraper.extract_from_page(page, url)
