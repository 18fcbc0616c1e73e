"""Pydantic models for the statement ingestion pipeline.

This module defines the records that flow through the pipeline: documents and their extracted text,
statement metadata, validation results, transactions with their category assignments, per-document
statistics and the batch state threaded through the orchestrator.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .utils import parse_statement_date, utcnow

UNCATEGORIZED = "UNCATEGORIZED"


class MediaType(StrEnum):
    """Declared media type of an uploaded document."""

    PDF = "application/pdf"
    TEXT = "text/plain"

    @classmethod
    def from_filename(cls, name: str) -> "MediaType | None":
        """Guess the media type from a file extension."""
        suffix = PurePath(name).suffix.lower()
        if suffix == ".pdf":
            return cls.PDF
        if suffix in (".txt", ".text"):
            return cls.TEXT
        return None


class DocumentStatus(StrEnum):
    """Per-document processing state."""

    UPLOADED = "uploaded"
    VALIDATING = "validating"
    VALIDATED = "validated"
    VALIDATION_FAILED = "validation_failed"
    PROCESSING = "processing"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({DocumentStatus.VALIDATION_FAILED, DocumentStatus.COMPLETED, DocumentStatus.FAILED})


class ValidationKind(StrEnum):
    """Classification produced by the document validator."""

    VALID_STATEMENT = "valid_statement"
    WRONG_DOCUMENT = "wrong_document"
    ANALYSIS_ERROR = "analysis_error"


class Confidence(StrEnum):
    """Qualitative strength of a validation or categorization result."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class Document(BaseModel):
    """A submitted document: identity plus its raw bytes (never serialized)."""

    name: str
    size: int = Field(ge=0)
    media_type: MediaType
    content: bytes = Field(default=b"", exclude=True, repr=False)

    @classmethod
    def from_bytes(cls, name: str, content: bytes, media_type: MediaType | str | None = None) -> "Document":
        """Build a document from raw bytes, guessing the media type from the name if not given."""
        resolved = MediaType(media_type) if media_type else MediaType.from_filename(name)
        if resolved is None:
            msg = f"Unsupported document type: {name}"
            raise ValueError(msg)
        return cls(name=name, size=len(content), media_type=resolved, content=content)


class ExtractedText(BaseModel):
    """Raw text handed over by the text extraction collaborator."""

    text: str
    page_count: int = Field(default=1, ge=1)


class StatementMetadata(BaseModel):
    """Structured header fields of one statement. Immutable once extracted."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    statement_period: str | None = None
    period_start: date | None = None
    period_end: date | None = None
    account_number: str | None = None
    iban: str | None = None
    currency: str
    opening_balance: Decimal = Decimal(0)
    closing_balance: Decimal = Decimal(0)
    extracted_at: datetime = Field(default_factory=utcnow)


class ValidationCounters(BaseModel):
    """Raw heuristic counters computed by the validator."""

    banking_keywords: int = 0
    dates: int = 0
    currency: int = 0
    text_density: float = 0.0


class ValidationResult(BaseModel):
    """Outcome of validating a document's text as a financial statement."""

    is_valid: bool
    kind: ValidationKind
    confidence: Confidence
    message: str
    suggestion: str | None = None
    warning: str | None = None
    counters: ValidationCounters = Field(default_factory=ValidationCounters)
    metadata: StatementMetadata | None = None


class CategoryAssignment(BaseModel):
    """Category attached to exactly one transaction."""

    model_config = ConfigDict(frozen=True)

    category: str = UNCATEGORIZED
    keyword: str | None = None
    confidence: Confidence = Confidence.NONE

    @property
    def is_categorized(self) -> bool:
        """Whether a rule matched."""
        return self.category != UNCATEGORIZED


class Transaction(BaseModel):
    """A single dated movement of funds parsed from statement text."""

    source_file: str
    transaction_date: str
    value_date: str
    description: str
    amount: Decimal = Field(ge=0)
    is_debit: bool
    balance: Decimal = Field(ge=0)
    currency: str
    account_number: str | None = None
    iban: str | None = None
    statement_period: str | None = None
    opening_balance: Decimal = Decimal(0)
    closing_balance: Decimal = Decimal(0)
    extracted_at: datetime | None = None
    metadata: StatementMetadata | None = Field(default=None, exclude=True, repr=False)
    assignment: CategoryAssignment | None = None

    @property
    def dedup_key(self) -> tuple[str, str, Decimal]:
        """Identity of a transaction within one document."""
        return (self.transaction_date, self.description, self.amount)

    @property
    def transaction_day(self) -> date | None:
        """The transaction date as a calendar date, if it is a real date."""
        return parse_statement_date(self.transaction_date)

    @property
    def category(self) -> str:
        """Assigned category label, UNCATEGORIZED until categorized."""
        return self.assignment.category if self.assignment else UNCATEGORIZED


class CategorizationRule(BaseModel):
    """A (keyword, category) pair used to classify a transaction description."""

    model_config = ConfigDict(frozen=True)

    keyword: str
    category: str

    @field_validator("keyword", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Reject blank keywords and categories."""
        if not v.strip():
            msg = "Rule keyword and category must not be blank"
            raise ValueError(msg)
        return v.strip()

    @field_validator("category")
    @classmethod
    def not_sentinel(cls, v: str) -> str:
        """The uncategorized sentinel cannot be targeted by a rule."""
        if v.upper() == UNCATEGORIZED:
            msg = f"'{UNCATEGORIZED}' is reserved and cannot be used as a rule category"
            raise ValueError(msg)
        return v


class DocumentProcessingStats(BaseModel):
    """Per-document aggregate reported after the document reaches a terminal state."""

    file_name: str
    status: str = "success"
    error: str | None = None
    total: int = 0
    categorized: int = 0
    uncategorized: int = 0
    statement_period: str | None = None
    account_number: str | None = None
    iban: str | None = None
    currency: str | None = None
    opening_balance: Decimal = Decimal(0)
    closing_balance: Decimal = Decimal(0)

    @computed_field
    @property
    def success_rate(self) -> float:
        """Percentage of the document's transactions that were categorized."""
        if not self.total:
            return 0.0
        return round(self.categorized / self.total * 100, 1)


class DocumentRecord(BaseModel):
    """A document inside a batch together with its processing state."""

    document: Document
    status: DocumentStatus = DocumentStatus.UPLOADED
    error: str | None = None
    page_count: int | None = None
    validation: ValidationResult | None = None
    stats: DocumentProcessingStats | None = None

    @property
    def name(self) -> str:
        """Name of the underlying document."""
        return self.document.name


class BatchState(BaseModel):
    """The whole run: documents, counters and the categorized output."""

    batch_id: str
    documents: list[DocumentRecord] = Field(default_factory=list)
    uploaded: int = 0
    validated: int = 0
    processed: int = 0
    failed: int = 0
    cancelled: bool = False
    category_buckets: dict[str, list[Transaction]] = Field(default_factory=dict)
    uncategorized: list[Transaction] = Field(default_factory=list)

    def record(self, name: str) -> DocumentRecord:
        """Look up a document record by name."""
        for rec in self.documents:
            if rec.name == name:
                return rec
        msg = f"Document not in batch: {name}"
        raise KeyError(msg)

    def with_status(self, status: DocumentStatus) -> list[DocumentRecord]:
        """Documents currently in the given state, in submission order."""
        return [rec for rec in self.documents if rec.status == status]

    @property
    def is_finished(self) -> bool:
        """Whether every document reached a terminal state."""
        return all(rec.status in TERMINAL_STATUSES for rec in self.documents)

    def all_transactions(self) -> list[Transaction]:
        """Every transaction in the output, categorized buckets first."""
        merged = [txn for bucket in self.category_buckets.values() for txn in bucket]
        return merged + list(self.uncategorized)


class BatchStatus(BaseModel):
    """Status row of a persisted batch."""

    status: str
    created_at: str
    completed_at: str | None = None
    error: str | None = None
    uploaded: int = 0
    validated: int = 0
    processed: int = 0
    failed: int = 0
