from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from mediamodules.core.config.models import ProviderSettings


LOGGER_NAME = "mediamodules"


def setup_logging(*, log_dir: Optional[str] = None, level: int = logging.WARNING, dump: bool = False) -> logging.Logger:
    """
    Configure the package logger. `dump` mirrors log lines to stderr;
    `level` is a stdlib logging level; 0 logs everything (NOTSET would defer
    to the root logger, so it maps to DEBUG).
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(int(level) or logging.DEBUG)
    logger.propagate = False

    if log_dir and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        os.makedirs(log_dir, exist_ok=True)
        text_path = os.path.join(log_dir, "mediamodules.log")
        h = RotatingFileHandler(text_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(h)

    dump_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)]
    if dump and not dump_handlers:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(name)s\t%(levelname)s\t%(message)s"))
        logger.addHandler(sh)
    elif not dump:
        for h in dump_handlers:
            logger.removeHandler(h)

    return logger


def configure_from_prefs(prefs: Any, *, log_dir: Optional[str] = None) -> logging.Logger:
    settings = ProviderSettings.from_prefs(prefs)
    return setup_logging(log_dir=log_dir, level=settings.logging_level, dump=settings.logging_dump)
