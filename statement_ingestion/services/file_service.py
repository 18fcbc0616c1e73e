"""Document storage on top of an S3-compatible object store."""

from typing import Protocol

from fastapi import UploadFile

from statement_ingestion.core.models import Document, MediaType


class ObjectStore(Protocol):
    """The subset of S3FileService the file service relies on."""

    def upload_fileobj(self, key: str, data: bytes) -> None:
        """Store bytes under a key."""

    def download_fileobj(self, key: str) -> bytes:
        """Fetch the bytes stored under a key."""

    def list_files(self, prefix: str = "") -> list[str]:
        """List keys with a prefix."""


class FileService:
    """Stores and reloads the documents of a batch."""

    def __init__(self, store: ObjectStore) -> None:
        """Initialize FileService with an object store (normally S3FileService)."""
        self.store = store

    @staticmethod
    def document_key(batch_id: str, name: str) -> str:
        """Object key of a batch document."""
        return f"batches/{batch_id}/{name}"

    def save_document(self, batch_id: str, document: Document) -> str:
        """Store a document's bytes and return its key."""
        key = self.document_key(batch_id, document.name)
        self.store.upload_fileobj(key, document.content)
        return key

    def load_document(self, batch_id: str, name: str, media_type: MediaType | str | None = None) -> Document:
        """Reload a stored document."""
        data = self.store.download_fileobj(self.document_key(batch_id, name))
        return Document.from_bytes(name, data, media_type)

    def list_documents(self, batch_id: str) -> list[str]:
        """Names of the documents stored for a batch."""
        prefix = self.document_key(batch_id, "")
        return [key[len(prefix) :] for key in self.store.list_files(prefix)]


async def read_upload(file: UploadFile) -> Document:
    """Read an uploaded file into a Document, rejecting unsupported types."""
    data = await file.read()
    media_type = MediaType.from_filename(file.filename or "")
    if media_type is None and file.content_type in (MediaType.PDF.value, MediaType.TEXT.value):
        media_type = MediaType(file.content_type)
    return Document.from_bytes(file.filename or "document", data, media_type)
