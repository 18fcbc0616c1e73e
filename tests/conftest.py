"""Shared fixtures: sample statement text, fake collaborators and a throwaway database."""

import pytest
from sqlalchemy.orm import sessionmaker

from statement_ingestion.core.db import BatchRepository, get_engine, init_db
from statement_ingestion.core.models import Document, ExtractedText
from statement_ingestion.core.settings import Settings

STATEMENT_TEXT = """THE MAURITIUS COMMERCIAL BANK LTD
STATEMENT OF ACCOUNT
Account Number: 000123456789
IBAN: MU17BOMM0101101030300200000MUR
Currency: MUR
Statement Date: from 01/03/2022 to 31/03/2022
Opening Balance: MUR 10,000.00
Closing Balance: MUR 22,750.00
TRANS DATE VALUE DATE TRANSACTION DETAILS DEBIT/CREDIT BALANCE
01/03/2022 01/03/2022 -250.00 9,750.00 Banking Subs Fee
05/03/2022 05/03/2022 15,000.00 24,750.00 Salary March 2022
Ref 4432
10/03/2022 10/03/2022 -1,200.00 23,550.00 JUICE Pro Transfer to MAUBANK
15/03/2022 15/03/2022 -800.00 22,750.00 Mystery vendor 42
"""

NOT_A_STATEMENT = (
    "Invitation to the annual garden party on 12/05/2023 near the river bank. "
    "Please bring friends, family and a good mood along with you."
)


class FakeStore:
    """Dict-backed stand-in for S3FileService."""

    def __init__(self) -> None:
        """Start with an empty store."""
        self.objects: dict[str, bytes] = {}

    def upload_fileobj(self, key: str, data: bytes) -> None:
        """Store bytes under a key."""
        self.objects[key] = data

    def download_fileobj(self, key: str) -> bytes:
        """Return the bytes under a key."""
        return self.objects[key]

    def list_files(self, prefix: str = "") -> list[str]:
        """List keys with a prefix."""
        return [key for key in self.objects if key.startswith(prefix)]


class FakeExtractor:
    """Text extraction collaborator returning canned text, or raising, per document name."""

    def __init__(self, texts: dict[str, str | Exception]) -> None:
        """Map document names to text or to the exception to raise."""
        self.texts = texts
        self.calls: list[str] = []

    def __call__(self, document: Document, page_limit: int | None = None) -> ExtractedText:
        """Return the canned text for a document."""
        _ = page_limit
        self.calls.append(document.name)
        result = self.texts[document.name]
        if isinstance(result, Exception):
            raise result
        return ExtractedText(text=result, page_count=1)


def make_document(name: str, text: str = "") -> Document:
    """Build a plain-text document."""
    return Document.from_bytes(name, text.encode("utf-8"))


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def repository(tmp_path) -> BatchRepository:
    """A repository on a fresh SQLite database."""
    engine = get_engine(f"sqlite:///{tmp_path / 'batches.db'}")
    init_db(engine)
    return BatchRepository(sessionmaker(bind=engine))
