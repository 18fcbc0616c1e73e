"""Exception types raised by the statement ingestion pipeline."""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class BatchSubmissionError(PipelineError):
    """A batch cannot be processed at all (no documents, or none passed validation)."""


class TextExtractionError(PipelineError):
    """The text extraction collaborator could not produce text for a document."""


class RuleConfigurationError(PipelineError):
    """A categorization rule table or vocabulary could not be loaded."""


class DocumentStorageError(PipelineError):
    """A stored document could not be written or read back."""
