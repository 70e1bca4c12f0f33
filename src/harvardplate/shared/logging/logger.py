from __future__ import annotations

import logging
from typing import Optional

from harvardplate.shared.config.settings import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
NOISY_LOGGERS = ("httpx", "httpcore", "pymongo", "urllib3")


def setup_logging(cfg: Optional[Settings] = None) -> None:
    cfg = cfg or default_settings
    lvl = getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    logging.getLogger().setLevel(lvl)
    # Reduce verbosity of noisy loggers
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
