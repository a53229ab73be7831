from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_FILENAME = "relaynav.log"


def setup_logging(settings: Settings, console: bool = False) -> Path:
    """Send relaynav logs to `RELAYNAV_LOG_DIR/relaynav.log` and return that path.

    The navigator draws on the whole terminal, so stderr output is opt-in
    (`console=True`, used by `--verbose`). Calling again replaces the handlers.
    """
    log_dir = Path(settings.RELAYNAV_LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME

    level_name = settings.RELAYNAV_LOG_LEVEL.strip().upper() or "INFO"
    level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = [
        TimedRotatingFileHandler(
            log_file,
            when="midnight",
            backupCount=max(0, settings.RELAYNAV_LOG_BACKUP_COUNT),
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    root = logging.getLogger()
    for old in root.handlers:
        old.close()
    root.handlers = []
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger("relaynav").info("Logging to %s at %s", log_file, level_name)
    return log_file
