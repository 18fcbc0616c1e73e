"""Document validation: decide whether raw text is a financial statement before it is processed."""

import re
from collections.abc import Iterable

from statement_ingestion.core.models import Confidence, ValidationCounters, ValidationKind, ValidationResult
from statement_ingestion.core.settings import Settings
from statement_ingestion.core.utils import get_logger

from .metadata import MetadataExtractor
from .vocabulary import CURRENCY_INDICATOR_PATTERN, DEFAULT_BANKING_KEYWORDS

logger = get_logger("statement-ingestion.validator")

DATE_PATTERN = re.compile(r"\b\d{2}/\d{2}/\d{4}\b")
CURRENCY_PATTERN = re.compile(CURRENCY_INDICATOR_PATTERN, re.IGNORECASE)

UPLOAD_SUGGESTION = "Please upload a genuine bank statement exported by your bank."
LOW_CONFIDENCE_WARNING = "Few statement markers were found; extracted transactions may be unreliable."


class DocumentValidator:
    """Scores raw text against banking heuristics and classifies the document."""

    def __init__(
        self,
        vocabulary: Iterable[str] = DEFAULT_BANKING_KEYWORDS,
        settings: Settings | None = None,
        metadata_extractor: MetadataExtractor | None = None,
    ) -> None:
        """Initialize the validator with a keyword vocabulary and calibration settings."""
        self.settings = settings or Settings()
        self.vocabulary = [word.lower() for word in vocabulary]
        self.metadata_extractor = metadata_extractor or MetadataExtractor(self.settings.default_currency)

    def count(self, raw_text: str, page_count: int = 1) -> ValidationCounters:
        """Compute the heuristic counters for a text."""
        lowered = raw_text.lower()
        return ValidationCounters(
            banking_keywords=sum(1 for word in set(self.vocabulary) if word in lowered),
            dates=len(DATE_PATTERN.findall(raw_text)),
            currency=len(CURRENCY_PATTERN.findall(raw_text)),
            text_density=len(raw_text) / max(page_count or 1, 1),
        )

    def classify(self, counters: ValidationCounters) -> ValidationResult:
        """Apply the decision policy to a set of counters."""
        s = self.settings
        kw, dates, cur = counters.banking_keywords, counters.dates, counters.currency
        if kw >= s.high_confidence_keywords and dates >= s.high_confidence_dates and cur >= s.high_confidence_currency:
            return ValidationResult(
                is_valid=True,
                kind=ValidationKind.VALID_STATEMENT,
                confidence=Confidence.HIGH,
                message="Bank statement detected.",
                counters=counters,
            )
        if kw >= s.medium_confidence_keywords and dates >= s.medium_confidence_dates:
            return ValidationResult(
                is_valid=True,
                kind=ValidationKind.VALID_STATEMENT,
                confidence=Confidence.MEDIUM,
                message="Probable bank statement detected.",
                counters=counters,
            )
        if kw < s.medium_confidence_keywords and dates < s.medium_confidence_dates:
            return ValidationResult(
                is_valid=False,
                kind=ValidationKind.WRONG_DOCUMENT,
                confidence=Confidence.NONE,
                message="This document does not look like a bank statement.",
                suggestion=UPLOAD_SUGGESTION,
                counters=counters,
            )
        return ValidationResult(
            is_valid=True,
            kind=ValidationKind.VALID_STATEMENT,
            confidence=Confidence.LOW,
            message="Possible bank statement detected.",
            warning=LOW_CONFIDENCE_WARNING,
            counters=counters,
        )

    def validate(self, raw_text: str, file_name: str, page_count: int = 1) -> ValidationResult:
        """Validate a document's text; never raises."""
        try:
            if len((raw_text or "").strip()) < self.settings.min_text_length:
                logger.warning(f"{file_name}: too little text to analyse ({len(raw_text or '')} characters)")
                return ValidationResult(
                    is_valid=False,
                    kind=ValidationKind.ANALYSIS_ERROR,
                    confidence=Confidence.NONE,
                    message="Not enough text could be extracted to analyse the document.",
                    suggestion="Check that the file is not empty, image-only or password protected.",
                )
            counters = self.count(raw_text, page_count)
            result = self.classify(counters)
            if result.is_valid:
                result.metadata = self.metadata_extractor.extract(raw_text, file_name)
            logger.info(
                f"{file_name}: {result.kind} ({result.confidence}) keywords={counters.banking_keywords} "
                f"dates={counters.dates} currency={counters.currency} density={counters.text_density:.0f}"
            )
        except Exception as exc:
            logger.exception(f"{file_name}: validation failed")
            return ValidationResult(
                is_valid=False,
                kind=ValidationKind.ANALYSIS_ERROR,
                confidence=Confidence.NONE,
                message=f"The document could not be analysed: {exc}",
                suggestion=UPLOAD_SUGGESTION,
            )
        return result


def validate(raw_text: str, file_name: str, page_count: int = 1) -> ValidationResult:
    """Validate raw text with the built-in vocabulary and default settings."""
    return DocumentValidator().validate(raw_text, file_name, page_count)
