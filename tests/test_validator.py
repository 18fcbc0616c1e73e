"""Tests for document validation."""

from conftest import NOT_A_STATEMENT, STATEMENT_TEXT

from statement_ingestion.core.models import Confidence, ValidationKind
from statement_ingestion.core.settings import Settings
from statement_ingestion.pipeline.validator import DocumentValidator, validate


def test_statement_is_valid_with_high_confidence() -> None:
    """A full statement clears every high-confidence threshold and carries its metadata."""
    result = validate(STATEMENT_TEXT, "march.txt")
    if not result.is_valid or result.confidence != Confidence.HIGH:
        msg = f"Expected a valid high-confidence result, got {result}"
        raise AssertionError(msg)
    if result.kind != ValidationKind.VALID_STATEMENT:
        msg = f"Unexpected kind {result.kind}"
        raise AssertionError(msg)
    if result.metadata is None or result.metadata.account_number != "000123456789":
        msg = "Expected metadata to be embedded in the validation result"
        raise AssertionError(msg)
    if result.counters.banking_keywords < 3 or result.counters.dates < 3 or result.counters.currency < 1:
        msg = f"Unexpected counters {result.counters}"
        raise AssertionError(msg)


def test_one_keyword_and_one_date_is_wrong_document() -> None:
    """A document with a single keyword and a single date is rejected."""
    result = validate(NOT_A_STATEMENT, "party.txt")
    if result.counters.banking_keywords != 1 or result.counters.dates != 1:
        msg = f"Fixture should have 1 keyword and 1 date, got {result.counters}"
        raise AssertionError(msg)
    if result.is_valid or result.kind != ValidationKind.WRONG_DOCUMENT:
        msg = f"Expected wrong_document, got {result}"
        raise AssertionError(msg)
    if not result.suggestion or result.metadata is not None:
        msg = "Expected an upload suggestion and no metadata"
        raise AssertionError(msg)


def test_medium_confidence() -> None:
    """Two keywords and two dates without currency is a medium-confidence statement."""
    text = "Account activity report for the period 01/02/2023 until 28/02/2023, see the balance column below."
    result = validate(text, "feb.txt")
    if not result.is_valid or result.confidence != Confidence.MEDIUM:
        msg = f"Expected valid/medium, got {result}"
        raise AssertionError(msg)


def test_low_confidence_carries_warning() -> None:
    """Enough dates but too few keywords is accepted with low confidence and a warning."""
    text = "Log of visits: 01/02/2023, 02/02/2023, 03/02/2023 and 04/02/2023 at the branch of our bank."
    result = validate(text, "visits.txt")
    if not result.is_valid or result.confidence != Confidence.LOW or not result.warning:
        msg = f"Expected valid/low with a warning, got {result}"
        raise AssertionError(msg)


def test_short_text_is_analysis_error() -> None:
    """Degenerate text yields analysis_error instead of raising."""
    for text in ("", "too short", None):
        result = validate(text, "blank.txt")
        if result.is_valid or result.kind != ValidationKind.ANALYSIS_ERROR:
            msg = f"Expected analysis_error for {text!r}, got {result}"
            raise AssertionError(msg)


def test_internal_error_is_analysis_error(monkeypatch) -> None:
    """Exceptions inside the validator are converted, never propagated."""
    validator = DocumentValidator()

    def boom(*_args: object) -> None:
        msg = "counter exploded"
        raise RuntimeError(msg)

    monkeypatch.setattr(validator, "count", boom)
    result = validator.validate(STATEMENT_TEXT, "march.txt")
    if result.kind != ValidationKind.ANALYSIS_ERROR or "counter exploded" not in result.message:
        msg = f"Expected analysis_error, got {result}"
        raise AssertionError(msg)


def test_vocabulary_and_thresholds_are_configurable() -> None:
    """A custom vocabulary and stricter thresholds change the decision."""
    strict = Settings(_env_file=None, medium_confidence_keywords=5, medium_confidence_dates=5)
    result = DocumentValidator(vocabulary=["garden", "party"], settings=strict).validate(NOT_A_STATEMENT, "p.txt")
    if result.counters.banking_keywords != 2:
        msg = f"Expected the custom vocabulary to be used, got {result.counters}"
        raise AssertionError(msg)
    if result.kind != ValidationKind.WRONG_DOCUMENT:
        msg = f"Expected wrong_document under strict thresholds, got {result}"
        raise AssertionError(msg)


def test_text_density_uses_page_count() -> None:
    """Density is text length divided by page count."""
    result = validate(STATEMENT_TEXT, "march.txt", page_count=2)
    if result.counters.text_density != len(STATEMENT_TEXT) / 2:
        msg = f"Unexpected density {result.counters.text_density}"
        raise AssertionError(msg)
