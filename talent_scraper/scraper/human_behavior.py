"""
Human-like pacing: jittered delays, typing and scrolling
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable

from talent_scraper.scraper.waits import wait_until_stable

logger = logging.getLogger(__name__)


class HumanBehavior:
    """Small randomized pauses between page interactions"""

    def __init__(self, speed: float = 1.0,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        Args:
            speed: multiplier applied to every delay (0 disables pacing)
            sleep: coroutine used for waiting
        """
        self.speed = speed
        self._sleep = sleep

    async def random_delay(self, min_seconds: float = 0.5, max_seconds: float = 1.5):
        if self.speed <= 0:
            return
        await self._sleep(random.uniform(min_seconds, max_seconds) * self.speed)

    async def human_type(self, page, selector: str, text: str):
        """Type into a field one key at a time with a jittered key delay"""
        await page.click(selector)
        await page.fill(selector, '')
        delay_ms = int(random.uniform(50, 140) * self.speed)
        await page.type(selector, text, delay=delay_ms)

    async def scroll_step(self, page, distance: int = 800):
        """Scroll one screen-ish step with a little jitter"""
        offset = distance + random.randint(0, 120)
        await page.evaluate(f"window.scrollBy(0, {offset})")
        await self.random_delay(0.2, 0.6)

    async def scroll_until_stable(self, page, timeout: float = 10.0) -> bool:
        """
        Keep scrolling until document height stops changing, then go back up

        Returns False when content was still loading at the deadline.
        """
        async def scroll_and_measure():
            await self.scroll_step(page)
            return await page.evaluate('document.body.scrollHeight')

        settled = await wait_until_stable(scroll_and_measure, timeout=timeout, sleep=self._sleep)
        await page.evaluate('window.scrollTo(0, 0)')
        return settled
