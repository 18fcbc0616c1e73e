"""Tabular report frames handed to the export collaborator.

A report has a summary table (one row per successfully processed document) and a transactions table
in chronological order. ``separate`` mode builds one report per document, ``combined`` one for the
whole batch.
"""

from enum import StrEnum
from typing import NamedTuple

import pandas as pd

from statement_ingestion.core.models import BatchState, DocumentProcessingStats, Transaction

COMBINED_KEY = "combined"

SUMMARY_COLUMNS = [
    "File",
    "Statement Period",
    "Account Number",
    "IBAN",
    "Currency",
    "Opening Balance",
    "Closing Balance",
    "Net Change",
    "Total Transactions",
    "Categorized",
    "Uncategorized",
    "Success Rate (%)",
]

TRANSACTION_COLUMNS = [
    "Transaction Date",
    "Value Date",
    "Description",
    "Amount",
    "Balance",
    "Category",
    "Currency",
    "Type",
    "Source File",
]


class ExportMode(StrEnum):
    """How a batch is split into reports."""

    SEPARATE = "separate"
    COMBINED = "combined"


class ReportTables(NamedTuple):
    """Summary and transactions tables of one report."""

    summary: pd.DataFrame
    transactions: pd.DataFrame


def summary_frame(stats: list[DocumentProcessingStats]) -> pd.DataFrame:
    """Summary table for the given document statistics."""
    rows = [
        [
            s.file_name,
            s.statement_period or "",
            s.account_number or "",
            s.iban or "",
            s.currency or "",
            float(s.opening_balance),
            float(s.closing_balance),
            float(s.closing_balance - s.opening_balance),
            s.total,
            s.categorized,
            s.uncategorized,
            s.success_rate,
        ]
        for s in stats
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def transactions_frame(transactions: list[Transaction]) -> pd.DataFrame:
    """Transactions table sorted by transaction date; undated rows keep their order at the end."""
    rows = [
        [
            txn.transaction_date,
            txn.value_date,
            txn.description,
            float(txn.amount),
            float(txn.balance),
            txn.category,
            txn.currency,
            "Debit" if txn.is_debit else "Credit",
            txn.source_file,
        ]
        for txn in transactions
    ]
    frame = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    if frame.empty:
        return frame
    order = pd.to_datetime(pd.Series([txn.transaction_day for txn in transactions], dtype=object))
    return frame.assign(_order=order).sort_values("_order", kind="stable", na_position="last").drop(
        columns="_order"
    ).reset_index(drop=True)


def build_report(state: BatchState, mode: ExportMode | str = ExportMode.COMBINED) -> dict[str, ReportTables]:
    """Build the report tables for a finalized batch."""
    successful = [rec.stats for rec in state.documents if rec.stats is not None and rec.stats.status == "success"]
    transactions = state.all_transactions()
    if ExportMode(mode) is ExportMode.COMBINED:
        return {COMBINED_KEY: ReportTables(summary_frame(successful), transactions_frame(transactions))}
    return {
        s.file_name: ReportTables(
            summary_frame([s]),
            transactions_frame([txn for txn in transactions if txn.source_file == s.file_name]),
        )
        for s in successful
    }
