"""Metadata extraction: statement period, account, IBAN, currency and balances from raw text.

Each field has an ordered list of candidate patterns; the first pattern that yields a usable value
wins. Extraction never fails: fields that cannot be found keep their defaults.
"""

import re
from decimal import Decimal

from statement_ingestion.core.models import StatementMetadata
from statement_ingestion.core.utils import get_logger, parse_decimal, parse_statement_date

logger = get_logger("statement-ingestion.metadata")

DATE = r"(\d{2}/\d{2}/\d{4})"
# An optional DD/MM/YYYY between label and amount is skipped; a date is never read as an amount.
AMOUNT = r"(?:\d{2}/\d{2}/\d{4}\s+)?(?:(?:MUR|USD|EUR|GBP|Rs\.?)\s*)?(-?[\d,]+(?:\.\d+)?)(?![\d/])"
SEP = r"\s*:?\s*"

PERIOD_PATTERNS = [
    re.compile(rf"statement\s+date{SEP}from\s+{DATE}\s+to\s+{DATE}", re.IGNORECASE),
    re.compile(rf"from\s+{DATE}\s+to\s+{DATE}", re.IGNORECASE),
    re.compile(rf"period{SEP}{DATE}\s*(?:[-–—]|to)\s*{DATE}", re.IGNORECASE),
]

ACCOUNT_PATTERNS = [
    re.compile(rf"account\s+(?:number|no\.?){SEP}(\d[\d-]*\d)", re.IGNORECASE),
    re.compile(rf"account{SEP}(\d{{10,}})", re.IGNORECASE),
    re.compile(rf"a/c(?:\s+no\.?)?{SEP}(\d{{10,}})", re.IGNORECASE),
]

IBAN_PATTERN = re.compile(r"\b(MU\d{2}(?: ?[A-Z0-9]{4}){6}(?: ?[A-Z0-9]{1,4})?)\b", re.IGNORECASE)

CURRENCY_PATTERN = re.compile(rf"currency{SEP}([A-Z]{{3}})\b", re.IGNORECASE)
MUR_TOKEN = re.compile(r"\bmur\b", re.IGNORECASE)

OPENING_BALANCE_PATTERNS = [
    re.compile(rf"(?:opening|beginning)\s+balance{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"balance\s+brought\s+forward{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"(?:previous|last)\s+balance{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"\bb/f{SEP}{AMOUNT}", re.IGNORECASE),
]

CLOSING_BALANCE_PATTERNS = [
    re.compile(rf"(?:closing|ending|final)\s+balance{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"balance\s+carried\s+forward{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"(?:current|new)\s+balance{SEP}{AMOUNT}", re.IGNORECASE),
    re.compile(rf"\bc/f{SEP}{AMOUNT}", re.IGNORECASE),
]


def _first_group(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _first_amount(patterns: list[re.Pattern[str]], text: str) -> Decimal | None:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        value = parse_decimal(match.group(1))
        if value is not None:
            return value
    return None


class MetadataExtractor:
    """Pulls structured statement fields out of raw document text."""

    def __init__(self, default_currency: str = "MUR") -> None:
        """Initialize the extractor with the currency used when none is detected."""
        self.default_currency = default_currency

    def extract_period(self, text: str) -> tuple[str | None, tuple[str, str] | None]:
        """Return the formatted period and its raw bounds."""
        for pattern in PERIOD_PATTERNS:
            match = pattern.search(text)
            if match:
                start, end = match.group(1), match.group(2)
                return f"{start} to {end}", (start, end)
        return None, None

    def extract_account_number(self, text: str) -> str | None:
        """Return the account number, if present."""
        return _first_group(ACCOUNT_PATTERNS, text)

    def extract_iban(self, text: str) -> str | None:
        """Return the Mauritius IBAN with spaces removed, if present."""
        match = IBAN_PATTERN.search(text)
        if not match:
            return None
        return match.group(1).replace(" ", "").upper()

    def extract_currency(self, text: str) -> str | None:
        """Return the statement currency code, or None when the text does not state one."""
        match = CURRENCY_PATTERN.search(text)
        if match:
            return match.group(1).upper()
        if MUR_TOKEN.search(text):
            return "MUR"
        return None

    def extract(self, raw_text: str, file_name: str) -> StatementMetadata:
        """Extract every metadata field; missing fields fall back to None or 0."""
        text = raw_text or ""
        period, bounds = self.extract_period(text)
        opening = _first_amount(OPENING_BALANCE_PATTERNS, text)
        closing = _first_amount(CLOSING_BALANCE_PATTERNS, text)
        metadata = StatementMetadata(
            file_name=file_name,
            statement_period=period,
            period_start=parse_statement_date(bounds[0]) if bounds else None,
            period_end=parse_statement_date(bounds[1]) if bounds else None,
            account_number=self.extract_account_number(text),
            iban=self.extract_iban(text),
            currency=self.extract_currency(text) or self.default_currency,
            opening_balance=opening if opening is not None else Decimal(0),
            closing_balance=closing if closing is not None else Decimal(0),
        )
        logger.debug(
            f"Metadata for {file_name}: period={metadata.statement_period} account={metadata.account_number} "
            f"iban={metadata.iban} currency={metadata.currency} opening={metadata.opening_balance} "
            f"closing={metadata.closing_balance}"
        )
        return metadata


def extract_metadata(raw_text: str, file_name: str, default_currency: str = "MUR") -> StatementMetadata:
    """Extract statement metadata from raw text."""
    return MetadataExtractor(default_currency).extract(raw_text, file_name)
