"""Aggregate statistics over a finalized batch.

Everything here is a pure reduction over a BatchState and is recomputed on every call; nothing is
maintained incrementally.
"""

from decimal import Decimal

from pydantic import BaseModel, computed_field

from .models import UNCATEGORIZED, BatchState, DocumentStatus, Transaction


class CategoryTotal(BaseModel):
    """Count and money totals of one category bucket."""

    category: str
    count: int = 0
    debits: Decimal = Decimal(0)
    credits: Decimal = Decimal(0)

    @computed_field
    @property
    def net(self) -> Decimal:
        """Credits minus debits."""
        return self.credits - self.debits


class Reconciliation(BaseModel):
    """Opening balance rolled forward through a document's transactions."""

    file_name: str
    opening_balance: Decimal
    closing_balance: Decimal
    calculated_closing: Decimal
    difference: Decimal

    @computed_field
    @property
    def balanced(self) -> bool:
        """Whether the stated closing balance matches the calculated one."""
        return self.difference == 0


class BatchSummary(BaseModel):
    """Batch-level figures reported to callers."""

    batch_id: str
    total_documents: int
    total_processed: int
    total_failed: int
    total_transactions: int
    categorized: int
    uncategorized: int
    success_rate: float
    total_opening_balance: Decimal
    total_closing_balance: Decimal
    cancelled: bool
    categories: list[CategoryTotal]
    reconciliations: list[Reconciliation]


def _totals(category: str, transactions: list[Transaction]) -> CategoryTotal:
    total = CategoryTotal(category=category, count=len(transactions))
    for txn in transactions:
        if txn.is_debit:
            total.debits += txn.amount
        else:
            total.credits += txn.amount
    return total


def total_transactions(state: BatchState) -> int:
    """Number of transactions in the batch output."""
    return sum(len(bucket) for bucket in state.category_buckets.values()) + len(state.uncategorized)


def success_rate(state: BatchState) -> float:
    """Percentage of transactions that were categorized."""
    total = total_transactions(state)
    if not total:
        return 0.0
    return round((total - len(state.uncategorized)) / total * 100, 1)


def category_totals(state: BatchState) -> list[CategoryTotal]:
    """Per-category totals in bucket order, uncategorized last when present."""
    totals = [_totals(category, bucket) for category, bucket in state.category_buckets.items() if bucket]
    if state.uncategorized:
        totals.append(_totals(UNCATEGORIZED, state.uncategorized))
    return totals


def balance_totals(state: BatchState) -> tuple[Decimal, Decimal]:
    """Sum of opening and closing balances over successfully processed documents."""
    opening = Decimal(0)
    closing = Decimal(0)
    for rec in state.documents:
        if rec.stats is not None and rec.stats.status == "success":
            opening += rec.stats.opening_balance
            closing += rec.stats.closing_balance
    return opening, closing


def reconcile(state: BatchState, file_name: str) -> Reconciliation:
    """Roll a document's opening balance through its transactions and compare with its closing balance."""
    stats = state.record(file_name).stats
    opening = stats.opening_balance if stats else Decimal(0)
    closing = stats.closing_balance if stats else Decimal(0)
    calculated = opening
    for txn in state.all_transactions():
        if txn.source_file == file_name:
            calculated += -txn.amount if txn.is_debit else txn.amount
    return Reconciliation(
        file_name=file_name,
        opening_balance=opening,
        closing_balance=closing,
        calculated_closing=calculated,
        difference=closing - calculated,
    )


def summarize(state: BatchState) -> BatchSummary:
    """Compute every batch-level figure."""
    opening, closing = balance_totals(state)
    total = total_transactions(state)
    return BatchSummary(
        batch_id=state.batch_id,
        total_documents=len(state.documents),
        total_processed=len(state.with_status(DocumentStatus.COMPLETED)),
        total_failed=len(state.with_status(DocumentStatus.FAILED)),
        total_transactions=total,
        categorized=total - len(state.uncategorized),
        uncategorized=len(state.uncategorized),
        success_rate=success_rate(state),
        total_opening_balance=opening,
        total_closing_balance=closing,
        cancelled=state.cancelled,
        categories=category_totals(state),
        reconciliations=[reconcile(state, rec.name) for rec in state.with_status(DocumentStatus.COMPLETED)],
    )
