"""
Browser session resource

- One long-lived Chromium process with a pinned user agent and viewport
- Lazy creation, transparent re-creation after a crash
- Single idle-eviction timer, reset on every access
- Authentication state re-validated when stale
- Isolated tabs sharing the signed-in cookie context
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Tuple

from playwright.async_api import async_playwright

from talent_scraper.exceptions import NotAuthenticated, SessionUnavailable
from talent_scraper.models import SessionHandle, SessionState
from talent_scraper.scraper.auth_detector import AuthDetector
from talent_scraper.utils.config import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

Launcher = Callable[[], Awaitable[Tuple[Any, Any, Any, Any]]]
TabListener = Callable[[str, Any], None]

STEALTH_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
    });
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en'],
    });
    window.chrome = {
        runtime: {},
        loadTimes: function() {},
        csi: function() {},
    };
"""


class BrowserController:
    """Owns the shared browser process and its lifecycle"""

    LAUNCH_ARGS = [
        '--disable-blink-features=AutomationControlled',
        '--disable-dev-shm-usage',
        '--no-sandbox',
        '--disable-notifications',
        '--disable-extensions',
        '--disable-default-apps',
        '--disable-sync',
        '--disable-translate',
    ]

    def __init__(self, headless: bool = False,
                 user_agent: str = DEFAULT_USER_AGENT,
                 viewport: Optional[Dict[str, int]] = None,
                 idle_timeout: float = 30 * 60,
                 auth_freshness: float = 60,
                 navigation_timeout: int = 30000,
                 use_stealth: bool = True,
                 detector: Optional[AuthDetector] = None,
                 launcher: Optional[Launcher] = None,
                 tab_listener: Optional[TabListener] = None):
        """
        Args:
            headless: Run Chromium without a window
            user_agent: Fixed user agent presented on every request
            viewport: Fixed viewport, defaults to 1366x768
            idle_timeout: Seconds without access before the process is torn down
            auth_freshness: Seconds of idleness after which auth is re-checked
            navigation_timeout: Default navigation timeout in ms for every page
            use_stealth: Inject the navigator patches into every page
            detector: Authentication detector (created if omitted)
            launcher: Coroutine returning (playwright, browser, context, page);
                      replaces the real Chromium launch, mainly for tests
            tab_listener: Called with ("open" | "close", page) for every tab
        """
        self.headless = headless
        self.user_agent = user_agent
        self.viewport = viewport or {'width': 1366, 'height': 768}
        self.idle_timeout = idle_timeout
        self.auth_freshness = auth_freshness
        self.navigation_timeout = navigation_timeout
        self.use_stealth = use_stealth
        self.detector = detector or AuthDetector(navigation_timeout=min(navigation_timeout, 15000))
        self.tab_listener = tab_listener
        self._launcher = launcher or self._launch

        self._handle: Optional[SessionHandle] = None
        self._lock = asyncio.Lock()
        # primary page is one tab: one lease at a time
        self._page_lock = asyncio.Lock()
        self._idle_timer: Optional[asyncio.TimerHandle] = None
        self._eviction_task: Optional[asyncio.Task] = None
        self._in_flight = 0
        self._open_tabs = 0

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> SessionState:
        if self._handle is None:
            return SessionState.ABSENT
        if self._handle.is_authenticated:
            return SessionState.ACTIVE_AUTHENTICATED
        return SessionState.ACTIVE_UNAUTHENTICATED

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._handle

    @property
    def open_tabs(self) -> int:
        return self._open_tabs

    @property
    def is_authenticated(self) -> bool:
        """Last known auth flag, without any navigation"""
        return self._handle is not None and self._handle.is_authenticated

    # -------------------------------------------------------------- lifecycle

    async def acquire(self) -> SessionHandle:
        """Return the live session, creating or re-creating it as needed"""
        async with self._lock:
            if self._handle is not None and not self._handle.is_alive():
                logger.warning("[WARN] Browser disconnected, creating a new session...")
                stale, self._handle = self._handle, None
                await self._teardown(stale)

            if self._handle is None:
                self._handle = await self._create()

            self._handle.touch()
            self._reset_idle_timer()
            return self._handle

    async def close(self):
        """Tear down the browser process and invalidate the handle"""
        self._cancel_idle_timer()
        async with self._lock:
            handle, self._handle = self._handle, None
        if handle is not None:
            logger.info("[SHUTDOWN] Closing browser session...")
            await self._teardown(handle)

    release = close

    async def _create(self) -> SessionHandle:
        logger.info("Launching browser session...")
        try:
            playwright, browser, context, page = await self._launcher()
        except Exception as e:
            logger.error(f"[X] Browser launch failed: {e}")
            raise SessionUnavailable(f"Browser launch failed: {e}") from e

        logger.info("[OK] Browser session ready")
        return SessionHandle(playwright=playwright, browser=browser, context=context, page=page)

    async def _launch(self):
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=self.headless,
                args=self.LAUNCH_ARGS,
                ignore_default_args=['--enable-automation'],
            )
            context = await browser.new_context(
                user_agent=self.user_agent,
                viewport=self.viewport,
                locale='en-US',
            )
            context.set_default_navigation_timeout(self.navigation_timeout)
            if self.use_stealth:
                await context.add_init_script(STEALTH_SCRIPT)
            page = await context.new_page()
        except Exception:
            await playwright.stop()
            raise
        return playwright, browser, context, page

    async def _teardown(self, handle: SessionHandle):
        """Close everything, logging rather than raising on close errors"""
        for name, closer in (
            ('page', getattr(handle.page, 'close', None)),
            ('context', getattr(handle.context, 'close', None)),
            ('browser', getattr(handle.browser, 'close', None)),
            ('playwright', getattr(handle.playwright, 'stop', None)),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.debug(f"{name} close note: {type(e).__name__}: {e}")
        logger.info("Browser cleanup completed")

    # ------------------------------------------------------------ idle timer

    def _cancel_idle_timer(self):
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None

    def _reset_idle_timer(self):
        self._cancel_idle_timer()
        loop = asyncio.get_running_loop()
        self._idle_timer = loop.call_later(self.idle_timeout, self._on_idle_timeout)

    def _on_idle_timeout(self):
        self._idle_timer = None
        if self._handle is None:
            return
        if self._in_flight > 0:
            logger.debug("Idle timeout reached with work in flight, deferring eviction")
            self._reset_idle_timer()
            return
        self._eviction_task = asyncio.ensure_future(self._evict())

    async def _evict(self):
        async with self._lock:
            handle = self._handle
            if handle is None:
                return
            # Touched after the timer fired, or work started meanwhile
            if self._in_flight > 0 or handle.idle_seconds() < self.idle_timeout:
                if self._idle_timer is None:
                    self._reset_idle_timer()
                return
            self._handle = None
        logger.info(f"[TIME] Session idle for {self.idle_timeout}s, closing browser...")
        await self._teardown(handle)

    # --------------------------------------------------------- page access

    def _after_access(self, handle: SessionHandle):
        if self._handle is handle:
            handle.touch()
            self._reset_idle_timer()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[SessionHandle]:
        """
        Use the primary page exclusively

        Leases are serialized, so concurrent callers never navigate or read
        the primary page at the same time. Eviction waits until the lease ends.
        Leases must not be nested.
        """
        async with self._page_lock:
            handle = await self.acquire()
            self._in_flight += 1
            try:
                yield handle
            finally:
                self._in_flight -= 1
                self._after_access(handle)

    @asynccontextmanager
    async def open_tab(self) -> AsyncIterator[Any]:
        """Open an isolated tab in the shared context; always closed on exit"""
        handle = await self.acquire()
        self._in_flight += 1
        page = None
        try:
            page = await handle.context.new_page()
            self._open_tabs += 1
            self._notify('open', page)
            yield page
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as e:
                    logger.debug(f"Tab close note: {type(e).__name__}: {e}")
                self._open_tabs -= 1
                self._notify('close', page)
            self._in_flight -= 1
            self._after_access(handle)

    def _notify(self, event: str, page):
        if self.tab_listener is None:
            return
        try:
            self.tab_listener(event, page)
        except Exception as e:
            logger.debug(f"Tab listener error: {e}")

    # ------------------------------------------------------- authentication

    def _needs_validation(self, handle: SessionHandle) -> bool:
        return (
            not handle.is_authenticated
            or handle.validated_at is None
            or handle.idle_seconds() > self.auth_freshness
        )

    async def check_authenticated(self) -> bool:
        """Run detection now and record the result"""
        async with self.lease() as handle:
            handle.is_authenticated = await self.detector.detect(handle.page)
            handle.validated_at = time.monotonic()
            return handle.is_authenticated

    async def require_authenticated(self) -> SessionHandle:
        """
        Return the session if it is signed in, re-validating when stale

        Raises:
            NotAuthenticated: detection says the session is not signed in
        """
        previous = self._handle
        # Staleness is judged before acquire() refreshes the activity time
        stale = previous is None or self._needs_validation(previous)

        async with self.lease() as handle:
            if stale or handle is not previous:
                handle.is_authenticated = await self.detector.detect(handle.page)
                handle.validated_at = time.monotonic()

            if not handle.is_authenticated:
                raise NotAuthenticated("LinkedIn session is not authenticated; log in first")
            return handle

    def mark_authenticated(self, value: bool):
        """Record a login-flow transition"""
        if self._handle is None:
            return
        self._handle.is_authenticated = value
        self._handle.validated_at = time.monotonic() if value else None

    def mark_stale(self):
        """Force re-validation on the next authenticated operation"""
        if self._handle is not None:
            self._handle.validated_at = None
