import logging
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_library_logger() -> logging.Logger:
    """Return the root logger for the ``promptr`` package."""
    return logging.getLogger("promptr")


def _has_file_handler(logger: logging.Logger, log_file: Path) -> bool:
    return any(
        isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file
        for h in logger.handlers
    )


def configure_logging(*, verbose: bool = False, log_file: Optional[Path] = None) -> int:
    """Set up console and optional file logging for a CLI run.

    ``verbose`` selects DEBUG over INFO for both the console and ``log_file``.
    A file already attached to the ``promptr`` logger is not attached twice.
    Returns the level that was applied.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=CONSOLE_FORMAT)
    logger = get_library_logger()
    logger.setLevel(level)

    if log_file is not None:
        log_file = Path(log_file).expanduser().resolve()
        if not log_file.parent.exists():
            log_file.parent.mkdir(parents=True, exist_ok=True)
        if not _has_file_handler(logger, log_file):
            handler = logging.FileHandler(str(log_file))
            handler.setFormatter(logging.Formatter(FILE_FORMAT))
            logger.addHandler(handler)
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(level)
    return level


__all__ = ["CONSOLE_FORMAT", "FILE_FORMAT", "configure_logging", "get_library_logger"]
