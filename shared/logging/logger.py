import logging
import os
from datetime import datetime
from pathlib import Path

_LOGGERS = {}

_RUN_STAMP = datetime.now().strftime("%Y%m%d-%H%M%S")


def _log_dir() -> Path:
    path = Path(os.getenv("BOT_LOG_DIR", "logs"))
    path.mkdir(parents=True, exist_ok=True)
    return path


def _log_level() -> int:
    name = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def get_logger(
    name: str,
    *,
    runtime: str = "herald",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. core.discord_app, twitch.live_worker)
    - runtime: log file prefix (herald | discord | twitch)

    Every logger writes to the console and to one file per run and runtime.
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(_log_level())

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    logfile = _log_dir() / f"{runtime}-{_RUN_STAMP}.log"

    file_handler = logging.FileHandler(logfile, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
