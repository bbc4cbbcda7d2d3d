"""
Logging setup for the attendance service using loguru.

Every record carries ``service`` and ``environment`` extras so lines from
this service can be told apart once shipped to the platform's log store.
Production writes JSON lines to a rotating file next to the console sink.
"""
import sys
from loguru import logger
from attendance.core.config import settings

SERVICE_NAME = "attendance"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[service]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging() -> None:
    logger.remove()
    logger.configure(extra={"service": SERVICE_NAME, "environment": settings.ENVIRONMENT})

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level="DEBUG" if settings.ENVIRONMENT == "development" else "INFO",
        colorize=settings.ENVIRONMENT != "production",
    )

    if settings.ENVIRONMENT == "production":
        logger.add(
            f"logs/{SERVICE_NAME}.jsonl",
            serialize=True,
            rotation="100 MB",
            retention="14 days",
            compression="zip",
            level="INFO",
        )


configure_logging()

__all__ = ["logger", "configure_logging"]
