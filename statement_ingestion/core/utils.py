"""Shared utility functions for the statement ingestion project."""

import logging
import re
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

import colorlog

DATE_FORMAT = "%d/%m/%Y"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def parse_decimal(val: str | None) -> Decimal | None:
    """Parse a number with thousands separators, returning None when it is not numeric."""
    if val is None:
        return None
    cleaned = re.sub(r"[,\s]", "", val)
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number


def parse_statement_date(val: str | None) -> date | None:
    """Parse a DD/MM/YYYY date, returning None for missing or impossible dates."""
    if not val:
        return None
    try:
        return datetime.strptime(val.strip(), DATE_FORMAT).replace(tzinfo=UTC).date()
    except ValueError:
        return None


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces and trim."""
    return re.sub(r"\s+", " ", text).strip()


def utcnow() -> datetime:
    """Get the current UTC time."""
    return datetime.now(UTC)


def utcnow_iso() -> str:
    """Get the current UTC time as an ISO8601 string."""
    return utcnow().isoformat()
