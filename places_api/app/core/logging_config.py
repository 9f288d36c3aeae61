"""
Root logger setup for the places API.

Everything logs through the standard ``logging`` module under
``places_api.*`` names.  ``configure_logging`` reads the level and the
optional log file from ``Settings`` and installs the handlers once per
process.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .config import Settings


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers of libraries we call that are too chatty at INFO.
QUIET_LOGGERS = ("urllib3", "multipart")


def build_handlers(logfile: Optional[str] = None) -> List[logging.Handler]:
    """Return a console handler and, if ``logfile`` is set, a file handler.

    The directory of ``logfile`` is created when missing.
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Settings) -> None:
    """Configure the root logger from ``config``.

    ``DEBUG=true`` forces the DEBUG level; otherwise ``LOG_LEVEL`` is
    used.  Does nothing if the root logger already has handlers.
    """
    root = logging.getLogger()
    if root.handlers:
        # create_app may run many times in one process (tests).
        return

    level = "DEBUG" if config.debug else config.log_level
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in build_handlers(config.log_file or None):
        root.addHandler(handler)

    if not config.debug:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
