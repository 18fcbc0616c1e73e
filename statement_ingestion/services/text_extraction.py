"""Text extraction collaborators and the registry that selects one per media type.

Extraction of text from PDF page streams or page images (including OCR) happens outside this
project; such extractors plug in by subclassing ``TextExtractor`` and registering for their media
type. Plain-text documents are handled here.
"""

from abc import ABC, abstractmethod
from typing import ClassVar

from statement_ingestion.core.errors import TextExtractionError
from statement_ingestion.core.models import Document, ExtractedText, MediaType

FORM_FEED = "\f"


class TextExtractor(ABC):
    """Abstract base class for all text extraction collaborators."""

    @abstractmethod
    def extract(self, document: Document, page_limit: int | None = None) -> ExtractedText:
        """Return the document's text and page count."""


class PlainTextExtractor(TextExtractor):
    """Decodes plain-text documents; form feeds separate pages."""

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize the extractor with the text encoding to decode with."""
        self.encoding = encoding

    def extract(self, document: Document, page_limit: int | None = None) -> ExtractedText:
        """Decode the document bytes, keeping at most ``page_limit`` pages."""
        try:
            text = document.content.decode(self.encoding)
        except UnicodeDecodeError as exc:
            msg = f"{document.name} is not valid {self.encoding} text: {exc}"
            raise TextExtractionError(msg) from exc
        pages = text.split(FORM_FEED)
        if page_limit is not None:
            pages = pages[:page_limit]
        return ExtractedText(text="\n".join(pages), page_count=max(len(pages), 1))


class ExtractorRegistry:
    """Registry of text extractors by media type."""

    _registry: ClassVar[dict[str, TextExtractor]] = {}

    @classmethod
    def register(cls, media_type: MediaType | str, extractor: TextExtractor) -> None:
        """Register an extractor for a media type."""
        cls._registry[str(media_type)] = extractor

    @classmethod
    def get(cls, media_type: MediaType | str) -> TextExtractor:
        """Retrieve the extractor for a media type."""
        try:
            return cls._registry[str(media_type)]
        except KeyError:
            msg = f"No text extractor registered for {media_type}"
            raise TextExtractionError(msg) from None

    @classmethod
    def available(cls) -> list[str]:
        """List the media types that have an extractor."""
        return list(cls._registry.keys())

    @classmethod
    def extract(cls, document: Document, page_limit: int | None = None) -> ExtractedText:
        """Extract a document's text with the extractor registered for its media type."""
        return cls.get(document.media_type).extract(document, page_limit)


ExtractorRegistry.register(MediaType.TEXT, PlainTextExtractor())
