"""Batch orchestration: drive documents through validate, extract metadata, parse and categorize.

Documents are processed one at a time. Each document's text, metadata and transactions stay private
to its own processing step and are merged into the BatchState in one go when the document completes,
so a failure part-way through a document never leaves partial output behind.
"""

import threading
import uuid
from collections.abc import Callable, Iterable
from typing import ClassVar

from statement_ingestion.core.db import BatchRepository
from statement_ingestion.core.errors import BatchSubmissionError
from statement_ingestion.core.models import (
    BatchState,
    Document,
    DocumentProcessingStats,
    DocumentRecord,
    DocumentStatus,
    ExtractedText,
    StatementMetadata,
    Transaction,
)
from statement_ingestion.core.settings import Settings
from statement_ingestion.core.utils import get_logger
from statement_ingestion.pipeline.categorizer import Categorizer, RuleInput
from statement_ingestion.pipeline.metadata import MetadataExtractor
from statement_ingestion.pipeline.parser import TransactionParser
from statement_ingestion.pipeline.rules import load_vocabulary
from statement_ingestion.pipeline.validator import DocumentValidator
from statement_ingestion.services.file_service import FileService
from statement_ingestion.services.text_extraction import ExtractorRegistry

logger = get_logger("statement-ingestion.worker")

Extract = Callable[[Document, int | None], ExtractedText]
ProgressCallback = Callable[[BatchState, DocumentRecord], None]


class BatchOrchestrator:
    """Runs a batch of documents through the pipeline with per-document failure isolation."""

    def __init__(
        self,
        rules: Iterable[RuleInput],
        extract: Extract = ExtractorRegistry.extract,
        settings: Settings | None = None,
        validator: DocumentValidator | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the orchestrator with a rule table and a text extraction collaborator."""
        self.settings = settings or Settings()
        self.categorizer = Categorizer(rules, self.settings.fuzzy_match_threshold)
        self.extract = extract
        self.metadata_extractor = MetadataExtractor(self.settings.default_currency)
        self.validator = validator or DocumentValidator(
            vocabulary=load_vocabulary(self.settings.vocabulary_file),
            settings=self.settings,
            metadata_extractor=self.metadata_extractor,
        )
        self.parser = TransactionParser()
        self.on_progress = on_progress
        self._text_cache: dict[str, ExtractedText] = {}

    def submit(self, documents: Iterable[Document], batch_id: str | None = None) -> BatchState:
        """Create a new batch for the given documents."""
        records = [DocumentRecord(document=doc) for doc in documents]
        if not records:
            msg = "No documents were submitted"
            raise BatchSubmissionError(msg)
        names = [rec.name for rec in records]
        if len(set(names)) != len(names):
            msg = "Document names within a batch must be unique"
            raise BatchSubmissionError(msg)
        self._text_cache.clear()
        state = BatchState(batch_id=batch_id or str(uuid.uuid4()), documents=records, uploaded=len(records))
        logger.info(f"[BATCH {state.batch_id}] Submitted {len(records)} documents")
        return state

    def _cancelled(self, state: BatchState, cancel_event: threading.Event | None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            if not state.cancelled:
                logger.warning(f"[BATCH {state.batch_id}] Cancelled; no further documents will be started")
            state.cancelled = True
        return state.cancelled

    def _report(self, state: BatchState, rec: DocumentRecord) -> None:
        if self.on_progress is not None:
            self.on_progress(state, rec)

    def _fail(self, state: BatchState, rec: DocumentRecord, exc: Exception) -> None:
        rec.status = DocumentStatus.FAILED
        rec.error = str(exc)
        rec.stats = DocumentProcessingStats(file_name=rec.name, status="failed", error=str(exc))
        self._text_cache.pop(rec.name, None)
        state.failed += 1

    def validate_batch(self, state: BatchState, cancel_event: threading.Event | None = None) -> BatchState:
        """Extract and validate every uploaded document."""
        pending = state.with_status(DocumentStatus.UPLOADED)
        for idx, rec in enumerate(pending, start=1):
            if self._cancelled(state, cancel_event):
                break
            logger.info(f"[BATCH {state.batch_id}] [VALIDATE {idx}/{len(pending)}] {rec.name}")
            rec.status = DocumentStatus.VALIDATING
            try:
                extracted = self.extract(rec.document, self.settings.page_limit)
            except Exception as exc:
                logger.exception(f"[BATCH {state.batch_id}] Text extraction failed for {rec.name}")
                self._fail(state, rec, exc)
                self._report(state, rec)
                continue
            rec.page_count = extracted.page_count
            result = self.validator.validate(extracted.text, rec.name, extracted.page_count)
            rec.validation = result
            if result.is_valid:
                rec.status = DocumentStatus.VALIDATED
                state.validated += 1
                if self.settings.cache_extracted_text:
                    self._text_cache[rec.name] = extracted
            else:
                rec.status = DocumentStatus.VALIDATION_FAILED
                rec.error = result.message
                rec.stats = DocumentProcessingStats(file_name=rec.name, status="failed", error=result.message)
                logger.warning(f"[BATCH {state.batch_id}] {rec.name} rejected: {result.kind}: {result.message}")
                self._report(state, rec)
        return state

    def _metadata_for(self, rec: DocumentRecord, text: str) -> StatementMetadata:
        if rec.validation is not None and rec.validation.metadata is not None:
            return rec.validation.metadata
        return self.metadata_extractor.extract(text, rec.name)

    def _process(self, rec: DocumentRecord) -> tuple[StatementMetadata, list[Transaction]]:
        rec.status = DocumentStatus.PROCESSING
        extracted = self._text_cache.pop(rec.name, None)
        if extracted is None:
            extracted = self.extract(rec.document, self.settings.page_limit)
        metadata = self._metadata_for(rec, extracted.text)
        rec.status = DocumentStatus.ANALYZING
        transactions = self.parser.parse(extracted.text, rec.name, metadata)
        for txn in transactions:
            self.categorizer.assign(txn)
        return metadata, transactions

    @staticmethod
    def _merge(state: BatchState, transactions: list[Transaction]) -> tuple[int, int]:
        categorized = 0
        for txn in transactions:
            if txn.assignment is not None and txn.assignment.is_categorized:
                state.category_buckets.setdefault(txn.assignment.category, []).append(txn)
                categorized += 1
            else:
                state.uncategorized.append(txn)
        return categorized, len(transactions) - categorized

    def run_batch(self, state: BatchState, cancel_event: threading.Event | None = None) -> BatchState:
        """Parse and categorize every validated document, merging results into the batch."""
        ready = state.with_status(DocumentStatus.VALIDATED)
        if not ready:
            msg = "No document passed validation; upload genuine bank statements"
            raise BatchSubmissionError(msg)
        for idx, rec in enumerate(ready, start=1):
            if self._cancelled(state, cancel_event):
                break
            logger.info(f"[BATCH {state.batch_id}] [DOC {idx}/{len(ready)}] Processing {rec.name}")
            try:
                metadata, transactions = self._process(rec)
            except Exception as exc:
                logger.exception(f"[BATCH {state.batch_id}] Failed to process {rec.name}")
                self._fail(state, rec, exc)
                self._report(state, rec)
                continue
            categorized, uncategorized = self._merge(state, transactions)
            rec.stats = DocumentProcessingStats(
                file_name=rec.name,
                status="success",
                total=len(transactions),
                categorized=categorized,
                uncategorized=uncategorized,
                statement_period=metadata.statement_period,
                account_number=metadata.account_number,
                iban=metadata.iban,
                currency=metadata.currency,
                opening_balance=metadata.opening_balance,
                closing_balance=metadata.closing_balance,
            )
            rec.status = DocumentStatus.COMPLETED
            state.processed += 1
            logger.info(
                f"[BATCH {state.batch_id}] {rec.name}: {len(transactions)} transactions, "
                f"{categorized} categorized, {uncategorized} uncategorized"
            )
            self._report(state, rec)
        logger.info(
            f"[BATCH {state.batch_id}] Finished: processed={state.processed} failed={state.failed} "
            f"cancelled={state.cancelled}"
        )
        return state

    def process_batch(
        self,
        documents: Iterable[Document],
        cancel_event: threading.Event | None = None,
        batch_id: str | None = None,
    ) -> BatchState:
        """Submit, validate and run a batch in one call."""
        state = self.submit(documents, batch_id)
        self.validate_batch(state, cancel_event)
        if state.cancelled:
            return state
        return self.run_batch(state, cancel_event)


def run_batch(
    documents: Iterable[Document],
    rules: Iterable[RuleInput],
    extract: Extract = ExtractorRegistry.extract,
    settings: Settings | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchState:
    """Process a batch of documents against a rule table and return the final state."""
    return BatchOrchestrator(rules, extract, settings).process_batch(documents, cancel_event)


class BatchRunner:
    """Executes a stored batch in the background and persists its progress."""

    _cancel_events: ClassVar[dict[str, threading.Event]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        file_service: FileService,
        repository: BatchRepository,
        rules: Iterable[RuleInput],
        settings: Settings | None = None,
        extract: Extract = ExtractorRegistry.extract,
    ) -> None:
        """Initialize the runner with storage, persistence and the rule table."""
        self.file_service = file_service
        self.repository = repository
        self.rules = list(rules)
        self.settings = settings or Settings()
        self.extract = extract

    @classmethod
    def cancel_event(cls, batch_id: str) -> threading.Event:
        """Return (creating if needed) the cancellation signal of a batch."""
        with cls._lock:
            return cls._cancel_events.setdefault(batch_id, threading.Event())

    @classmethod
    def cancel(cls, batch_id: str) -> bool:
        """Signal a running batch to stop; returns False if the batch is not running."""
        with cls._lock:
            event = cls._cancel_events.get(batch_id)
        if event is None:
            return False
        event.set()
        return True

    def run(self, batch_id: str, documents: list[tuple[str, str]]) -> BatchState | None:
        """Load the stored documents of a batch and run them through the pipeline."""
        logger.info(f"Starting batch: {batch_id} ({len(documents)} documents)")
        cancel_event = self.cancel_event(batch_id)
        self.repository.update_status(batch_id, "in_progress")

        def persist(state: BatchState, _rec: DocumentRecord) -> None:
            self.repository.save_result(batch_id, state)

        orchestrator = BatchOrchestrator(self.rules, self.extract, self.settings, on_progress=persist)
        state: BatchState | None = None
        try:
            loaded = [self.file_service.load_document(batch_id, name, media_type) for name, media_type in documents]
            state = orchestrator.submit(loaded, batch_id)
            orchestrator.validate_batch(state, cancel_event)
            if not state.cancelled:
                orchestrator.run_batch(state, cancel_event)
            self.repository.save_result(batch_id, state)
            self.repository.update_status(batch_id, "cancelled" if state.cancelled else "completed")
        except Exception as exc:
            logger.exception(f"Error processing batch {batch_id}")
            if state is not None:
                self.repository.save_result(batch_id, state)
            self.repository.update_status(batch_id, "error", error=str(exc))
        finally:
            with self._lock:
                self._cancel_events.pop(batch_id, None)
        return state
