import inspect
import logging
import sys
from pathlib import Path

from loguru import logger

from app.core.config import settings

ACCESS_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn, SQLAlchemy) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so loguru reports the right origin
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_file: str, *, access_log_file: str = "access.log") -> None:
    """Configure loguru sinks: stderr, a rotating app log and an access log.

    Access lines are the records bound with ``access=True``; they go to the
    access log only.
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if settings.is_dev else "INFO",
        filter=lambda record: "access" not in record["extra"],
    )
    logger.add(
        log_dir / log_file,
        level="DEBUG",
        rotation="10 MB",
        retention="14 days",
        encoding="utf-8",
        filter=lambda record: "access" not in record["extra"],
    )
    logger.add(
        log_dir / access_log_file,
        level="INFO",
        format=ACCESS_LOG_FORMAT,
        rotation="10 MB",
        retention="14 days",
        encoding="utf-8",
        filter=lambda record: "access" in record["extra"],
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)
    for name in ("uvicorn", "uvicorn.error", "sqlalchemy.engine"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
    # Replaced by the access middleware
    logging.getLogger("uvicorn.access").disabled = True
