"""Transaction parsing: turn raw statement text into deduplicated transaction records.

A record is a run of ``transDate valueDate amount balance description``. The description is captured
lazily and ends where the next date pair starts, or at the end of the text, since descriptions may
themselves contain numbers and single dates.
"""

import re
from decimal import Decimal

from statement_ingestion.core.models import StatementMetadata, Transaction
from statement_ingestion.core.utils import get_logger, normalize_whitespace, parse_decimal

logger = get_logger("statement-ingestion.parser")

DATE = r"\d{2}/\d{2}/\d{4}"
NUMBER = r"-?[\d,]+(?:\.\d+)?"

TRANSACTION_PATTERN = re.compile(
    rf"({DATE})\s+({DATE})\s+({NUMBER})\s+({NUMBER})\s+(.*?)(?={DATE}\s+{DATE}|\Z)",
    re.DOTALL,
)

NOISE_PHRASES = ("trans date", "statement page", "account number", "balance forward")
MIN_DESCRIPTION_LEN = 3


class TransactionParser:
    """Scans statement text for transaction-shaped records."""

    def __init__(self, noise_phrases: tuple[str, ...] = NOISE_PHRASES) -> None:
        """Initialize the parser with the phrases that mark header/footer noise."""
        self.noise_phrases = tuple(phrase.lower() for phrase in noise_phrases)

    def _is_noise(self, description: str) -> bool:
        lowered = description.lower()
        return any(phrase in lowered for phrase in self.noise_phrases)

    def parse(self, raw_text: str, file_name: str, metadata: StatementMetadata) -> list[Transaction]:
        """Parse every transaction in the text, stamped with the document's metadata."""
        transactions: list[Transaction] = []
        seen: set[tuple[str, str, Decimal]] = set()
        rejected = 0
        for match in TRANSACTION_PATTERN.finditer(raw_text or ""):
            trans_date, value_date, amount_token, balance_token, raw_description = match.groups()
            description = normalize_whitespace(raw_description)
            if self._is_noise(description):
                rejected += 1
                continue
            amount = parse_decimal(amount_token)
            if amount is None:
                logger.debug(f"{file_name}: skipping record with unparseable amount {amount_token!r}")
                rejected += 1
                continue
            if len(description) < MIN_DESCRIPTION_LEN:
                rejected += 1
                continue
            balance = parse_decimal(balance_token)
            if balance is None:
                logger.debug(f"{file_name}: unparseable balance {balance_token!r}, recording 0")
                balance = Decimal(0)
            txn = Transaction(
                source_file=file_name,
                transaction_date=trans_date,
                value_date=value_date,
                description=description,
                amount=abs(amount),
                is_debit=amount < 0 or "-" in amount_token,
                balance=abs(balance),
                currency=metadata.currency,
                account_number=metadata.account_number,
                iban=metadata.iban,
                statement_period=metadata.statement_period,
                opening_balance=metadata.opening_balance,
                closing_balance=metadata.closing_balance,
                extracted_at=metadata.extracted_at,
                metadata=metadata,
            )
            if txn.dedup_key in seen:
                logger.debug(f"{file_name}: dropping duplicate {txn.dedup_key}")
                continue
            seen.add(txn.dedup_key)
            transactions.append(txn)
        if not transactions:
            logger.info(f"{file_name}: no transactions found")
        else:
            logger.info(f"{file_name}: parsed {len(transactions)} transactions ({rejected} records rejected)")
        return transactions


def parse_transactions(raw_text: str, file_name: str, metadata: StatementMetadata) -> list[Transaction]:
    """Parse transactions from raw statement text."""
    return TransactionParser().parse(raw_text, file_name, metadata)
