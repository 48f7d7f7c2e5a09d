import logging
import sys
from typing import Optional
from .config import settings

_HANDLER_NAME = "taskcycle-console"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure application logging.

    Safe to call more than once (app factory in tests, uvicorn reloads): the
    console handler is only attached the first time.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or settings.log_level).upper()))

    console_handler = next(
        (h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME), None
    )
    if console_handler is None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(logging.Formatter(settings.log_format))
        root_logger.addHandler(console_handler)

    # Configure uvicorn loggers
    logging.getLogger("uvicorn.access").handlers = [console_handler]
    logging.getLogger("uvicorn.error").handlers = [console_handler]

    # SQL echo only when explicitly debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.log_level.upper() == "DEBUG" else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name."""
    return logging.getLogger(name)
