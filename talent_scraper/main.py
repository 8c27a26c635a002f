"""
LinkedIn talent sourcing scraper
Interactive command-line entry point

Features:
- One long-lived signed-in browser session (closed after idle time)
- People search with optional location filter
- Profile scraping across a bounded pool of tabs
- Export to JSON/CSV
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional

from talent_scraper.exceptions import (
    ChallengeRequired,
    InvalidCredentials,
    NotAuthenticated,
    ScraperError,
)
from talent_scraper.models import ProfileDetail, ScrapeProgress, SearchCriteria
from talent_scraper.service import SourcingService
from talent_scraper.utils.config import Config
from talent_scraper.utils.exporter import DataExporter
from talent_scraper.utils.logger import setup_logging

logger = logging.getLogger(__name__)

MENU = [
    ("1", "Log in"),
    ("2", "Search profiles"),
    ("3", "Search & scrape profiles"),
    ("4", "Scrape profile URLs"),
    ("5", "Session status"),
    ("0", "Exit"),
]


def print_banner():
    print("\n" + "=" * 60)
    print("  LinkedIn Talent Scraper")
    print("=" * 60)


def print_config_info(config: Config):
    print(f"Headless:       {config.HEADLESS}")
    print(f"Concurrency:    {config.scraping['concurrency']}")
    print(f"Max results:    {config.scraping['max_results']}")
    print(f"Idle timeout:   {config.browser['idle_timeout']}s")
    print(f"Export path:    {config.export['export_path']}")
    print(f"Credentials:    {'configured' if config.has_credentials else 'missing'}")


class TalentScraperApp:
    """Interactive menu over SourcingService"""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.service = SourcingService(self.config)
        self.exporter = DataExporter(self.config.export['export_path'])
        self.start_time = None

    async def login(self) -> bool:
        try:
            result = await self.service.ensure_authenticated()
            logger.info(f"[OK] Session ready ({result.value})")
            return True
        except ChallengeRequired as e:
            logger.warning(f"[LOCK] {e}")
            print("Complete the verification in the browser window, then choose 'Log in' again.")
        except InvalidCredentials as e:
            logger.error(f"[X] {e}")
        except ScraperError as e:
            logger.error(f"[X] Login error: {e}")
        return False

    async def workflow_search(self, scrape: bool = False):
        keyword = input("\nKeywords: ").strip()
        if not keyword:
            print("[X] Keywords are required")
            return
        location = input("Location (optional): ").strip() or None
        default_max = self.config.scraping['max_results']
        max_results = int(input(f"Max results (default {default_max}): ") or default_max)

        summaries = await self.service.search(
            SearchCriteria(keyword=keyword, location=location, max_results=max_results)
        )
        print(f"\n[INFO] {len(summaries)} profiles ({self.service.last_search_status.value})")
        for i, summary in enumerate(summaries, 1):
            print(f"{i:>3}. {summary.display_name} | {summary.headline} | {summary.profile_url}")

        if not summaries:
            return
        if not scrape:
            self.exporter.export_all_formats(summaries, prefix='search')
            return
        await self.workflow_scrape([s.profile_url for s in summaries])

    async def workflow_scrape(self, profile_urls: Optional[List[str]] = None):
        if profile_urls is None:
            raw = input("\nProfile URLs (comma-separated): ").split(',')
            profile_urls = [u.strip() for u in raw if u.strip()]
        if not profile_urls:
            return

        def on_progress(progress: ScrapeProgress):
            status = "OK" if progress.success else f"FAILED ({progress.error})"
            print(f"[{progress.completed}/{progress.total}] {progress.profile_url}: {status}")

        try:
            profiles = await self.service.scrape_many(profile_urls, on_progress=on_progress)
        except (NotAuthenticated, ChallengeRequired) as e:
            logger.error(f"[X] Session lost: {e}")
            profiles = e.partial_results
        self._export(profiles)

    def _export(self, profiles: List[ProfileDetail]):
        if not profiles:
            logger.warning("No profiles to export")
            return
        results = self.exporter.export_all_formats(profiles)
        for format_name, success in results.items():
            if success:
                logger.info(f"[OK] Exported to {format_name.upper()}")
        logger.info(f"[OK] Export completed: {self.exporter.get_export_path()}")

    def show_status(self):
        print(f"\nSession: {self.service.session_state.value}")

    async def show_menu(self) -> str:
        print("\n" + "=" * 60)
        print("[MENU] SELECT MODE")
        print("=" * 60)
        for key, label in MENU:
            print(f"{key}. {label}")
        print("=" * 60)
        choices = [key for key, _ in MENU]
        while True:
            choice = input(f"\nEnter your choice (0-{len(MENU) - 1}): ").strip()
            if choice in choices:
                return choice
            print("[X] Invalid choice. Please try again.")

    async def run(self):
        self.start_time = datetime.now()
        print_banner()
        print_config_info(self.config)
        try:
            while True:
                choice = await self.show_menu()
                if choice == "0":
                    break
                try:
                    if choice == "1":
                        await self.login()
                    elif choice == "2":
                        await self.workflow_search(scrape=False)
                    elif choice == "3":
                        await self.workflow_search(scrape=True)
                    elif choice == "4":
                        await self.workflow_scrape()
                    elif choice == "5":
                        self.show_status()
                except (ScraperError, ValueError) as e:
                    logger.error(f"[X] {type(e).__name__}: {e}")
            logger.info("[OK] Goodbye!")
        except (KeyboardInterrupt, EOFError):
            logger.info("[INTERRUPT] Interrupted by user")
        finally:
            await self.shutdown()

    async def shutdown(self):
        logger.info("[SHUTDOWN] Shutting down...")
        await self.service.close_session()
        if self.start_time:
            logger.info(f"Total execution time: {datetime.now() - self.start_time}")


async def main():
    config = Config()
    setup_logging(level=config.LOG_LEVEL)
    await TalentScraperApp(config).run()


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
