"""
Diagnostic bundles for pages the parsers could not read

A bundle is the page HTML plus a full-page screenshot, written side by side
under the diagnostics directory so markup drift can be inspected later.
"""

import asyncio
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r'[^A-Za-z0-9_-]+')


class DiagnosticsWriter:
    """Writes HTML + screenshot bundles; never raises"""

    def __init__(self, base_dir: Union[str, Path] = 'logs/diagnostics'):
        self.base_dir = Path(base_dir)

    def _stem(self, label: str) -> str:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        safe = _UNSAFE.sub('_', label).strip('_')[:60] or 'page'
        return f'{safe}_{timestamp}'

    async def capture(self, page, label: str) -> Optional[Dict[str, Path]]:
        """
        Save the current state of page

        Returns the written paths, or None when nothing could be written.
        """
        written: Dict[str, Path] = {}
        try:
            await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"[WARN] Cannot create diagnostics directory {self.base_dir}: {e}")
            return None

        stem = self._stem(label)

        try:
            html = await page.content()
            html_path = self.base_dir / f'{stem}.html'
            # file I/O off the event loop
            await asyncio.to_thread(html_path.write_text, html, encoding='utf-8')
            written['html'] = html_path
        except Exception as e:
            logger.debug(f"Diagnostics HTML note: {type(e).__name__}: {e}")

        try:
            png_path = self.base_dir / f'{stem}.png'
            await page.screenshot(path=str(png_path), full_page=True)
            written['screenshot'] = png_path
        except Exception as e:
            logger.debug(f"Diagnostics screenshot note: {type(e).__name__}: {e}")

        if not written:
            return None
        logger.info(f"[INFO] Diagnostic bundle saved: {self.base_dir / stem}.*")
        return written
