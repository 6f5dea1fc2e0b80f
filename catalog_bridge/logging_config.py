import logging
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.INFO, format_string: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the package logger.

    Calling it again replaces the handler rather than stacking another one.
    """
    logger = logging.getLogger("catalog_bridge")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    logger.addHandler(handler)
    return logger
