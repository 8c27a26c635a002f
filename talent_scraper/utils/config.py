"""
Configuration loaded from environment variables (.env supported)
"""

import os
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


class Config:
    """Settings for the browser session, scraping and exports"""

    def __init__(self, env_file: Optional[Union[str, Path]] = '.env'):
        if env_file and Path(env_file).exists():
            load_dotenv(env_file)

        # Credentials
        self.LINKEDIN_EMAIL = os.getenv('LINKEDIN_EMAIL', '')
        self.LINKEDIN_PASSWORD = os.getenv('LINKEDIN_PASSWORD', '')

        self.HEADLESS = _env_bool('HEADLESS', False)
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

        self.browser = {
            'headless': self.HEADLESS,
            'user_agent': os.getenv('USER_AGENT', DEFAULT_USER_AGENT),
            'viewport': {
                'width': _env_int('VIEWPORT_WIDTH', 1366),
                'height': _env_int('VIEWPORT_HEIGHT', 768),
            },
            # seconds
            'idle_timeout': _env_int('IDLE_TIMEOUT', 30 * 60),
            'auth_freshness': _env_int('AUTH_FRESHNESS', 60),
            # milliseconds, Playwright convention
            'navigation_timeout': _env_int('NAVIGATION_TIMEOUT', 30000),
        }

        self.scraping = {
            'concurrency': _env_int('CONCURRENCY', 3),
            'item_timeout': _env_int('ITEM_TIMEOUT', 120),
            'max_results': _env_int('MAX_RESULTS', 10),
            'follow_detail_pages': _env_bool('FOLLOW_DETAIL_PAGES', False),
        }

        self.export = {
            'export_path': os.getenv('EXPORT_PATH', 'data/exports'),
            'diagnostics_path': os.getenv('DIAGNOSTICS_PATH', 'logs/diagnostics'),
        }

        self._validate()

    def _validate(self):
        if self.scraping['concurrency'] < 1:
            raise ValueError("CONCURRENCY must be at least 1")
        if self.browser['idle_timeout'] <= 0:
            raise ValueError("IDLE_TIMEOUT must be positive")

    @property
    def has_credentials(self) -> bool:
        return bool(self.LINKEDIN_EMAIL and self.LINKEDIN_PASSWORD)
