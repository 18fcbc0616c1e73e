"""Tests for statement metadata extraction."""

from datetime import date
from decimal import Decimal

from conftest import STATEMENT_TEXT

from statement_ingestion.pipeline.metadata import MetadataExtractor, extract_metadata


def test_balances_with_currency_marker() -> None:
    """Opening and closing balances are parsed after stripping thousands separators."""
    text = "Summary\nopening balance: MUR 10,500.00\nclosing balance: MUR 12,750.25\n"
    metadata = extract_metadata(text, "a.txt")
    if metadata.opening_balance != Decimal("10500.00"):
        msg = f"Expected opening balance 10500.00, got {metadata.opening_balance}"
        raise AssertionError(msg)
    if metadata.closing_balance != Decimal("12750.25"):
        msg = f"Expected closing balance 12750.25, got {metadata.closing_balance}"
        raise AssertionError(msg)
    if metadata.currency != "MUR":
        msg = f"Expected currency MUR, got {metadata.currency}"
        raise AssertionError(msg)


def test_full_statement_header() -> None:
    """Every header field of a typical statement is extracted."""
    metadata = extract_metadata(STATEMENT_TEXT, "march.txt")
    expected = {
        "file_name": "march.txt",
        "statement_period": "01/03/2022 to 31/03/2022",
        "period_start": date(2022, 3, 1),
        "period_end": date(2022, 3, 31),
        "account_number": "000123456789",
        "iban": "MU17BOMM0101101030300200000MUR",
        "currency": "MUR",
        "opening_balance": Decimal("10000.00"),
        "closing_balance": Decimal("22750.00"),
    }
    for field, value in expected.items():
        if getattr(metadata, field) != value:
            msg = f"Expected {field}={value!r}, got {getattr(metadata, field)!r}"
            raise AssertionError(msg)


def test_alternative_phrasings() -> None:
    """Lower-priority patterns are used when the preferred phrasing is absent."""
    text = (
        "Period: 01/01/2023 - 31/01/2023\n"
        "A/C: 1234567890123\n"
        "Balance brought forward 1,000.50\n"
        "Balance carried forward -200.00\n"
        "IBAN MU17 BOMM 0101 1010 3030 0200 000M UR\n"
    )
    metadata = extract_metadata(text, "jan.txt")
    if metadata.statement_period != "01/01/2023 to 31/01/2023":
        msg = f"Unexpected period {metadata.statement_period}"
        raise AssertionError(msg)
    if metadata.account_number != "1234567890123":
        msg = f"Unexpected account number {metadata.account_number}"
        raise AssertionError(msg)
    if metadata.opening_balance != Decimal("1000.50"):
        msg = f"Unexpected opening balance {metadata.opening_balance}"
        raise AssertionError(msg)
    if metadata.closing_balance != Decimal("-200.00"):
        msg = f"Unexpected closing balance {metadata.closing_balance}"
        raise AssertionError(msg)
    if metadata.iban != "MU17BOMM0101101030300200000MUR":
        msg = f"Unexpected IBAN {metadata.iban}"
        raise AssertionError(msg)


def test_non_numeric_balance_falls_through_to_next_pattern() -> None:
    """A balance phrase followed by junk does not stop later patterns from matching."""
    text = "Opening balance: ,,, see below\nB/F 2,500.00"
    metadata = extract_metadata(text, "x.txt")
    if metadata.opening_balance != Decimal("2500.00"):
        msg = f"Expected 2500.00 from the b/f pattern, got {metadata.opening_balance}"
        raise AssertionError(msg)


def test_missing_fields_use_defaults() -> None:
    """Text without any header yields nulls, zero balances and the configured currency."""
    metadata = MetadataExtractor(default_currency="EUR").extract("nothing useful here", "empty.txt")
    if metadata.statement_period is not None or metadata.account_number is not None or metadata.iban is not None:
        msg = f"Expected empty metadata, got {metadata}"
        raise AssertionError(msg)
    if metadata.currency != "EUR":
        msg = f"Expected fallback currency EUR, got {metadata.currency}"
        raise AssertionError(msg)
    if metadata.opening_balance != 0 or metadata.closing_balance != 0:
        msg = "Expected zero balances"
        raise AssertionError(msg)


def test_explicit_currency_wins_over_mur_token() -> None:
    """An explicit currency field takes priority over a stray MUR mention."""
    metadata = extract_metadata("Currency: usd\nconverted from MUR", "usd.txt")
    if metadata.currency != "USD":
        msg = f"Expected USD, got {metadata.currency}"
        raise AssertionError(msg)


def test_date_after_balance_label_is_not_the_balance() -> None:
    """A date between a balance label and its amount is skipped, never read as the amount."""
    text = "Balance brought forward 01/03/2022 10,000.00\nClosing Balance 31/03/2022 22,750.00\n"
    metadata = extract_metadata(text, "dated.txt")
    if (metadata.opening_balance, metadata.closing_balance) != (Decimal("10000.00"), Decimal("22750.00")):
        msg = f"opening={metadata.opening_balance} closing={metadata.closing_balance}"
        raise AssertionError(msg)


def test_bare_date_after_balance_label_falls_through() -> None:
    """A balance label followed only by a date is no match; the next pattern supplies the value."""
    text = "Opening Balance 01/03/2022\nB/F 2,500.00\nClosing Balance 31/03/2022\nC/F 1,000.00\n"
    metadata = extract_metadata(text, "dated.txt")
    if (metadata.opening_balance, metadata.closing_balance) != (Decimal("2500.00"), Decimal("1000.00")):
        msg = f"opening={metadata.opening_balance} closing={metadata.closing_balance}"
        raise AssertionError(msg)
