"""
Logging setup: console plus a rotating file under logs/
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Union[str, int] = 'INFO',
                  log_dir: Optional[Union[str, Path]] = 'logs') -> logging.Logger:
    """Configure the root logger once; safe to call repeatedly"""
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in list(root.handlers):
        if getattr(handler, '_talent_scraper', False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    console._talent_scraper = True
    root.addHandler(console)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            Path(log_dir) / 'scraper.log',
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        file_handler._talent_scraper = True
        root.addHandler(file_handler)

    logging.getLogger('asyncio').setLevel(logging.WARNING)
    return root
