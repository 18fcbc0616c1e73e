"""Core package: provides models, database helpers, settings, errors and shared utilities."""

from .db import BatchRepository, get_repository  # noqa: F401
from .errors import (  # noqa: F401
    BatchSubmissionError,
    DocumentStorageError,
    PipelineError,
    RuleConfigurationError,
    TextExtractionError,
)
from .models import BatchState, CategoryAssignment, StatementMetadata, Transaction, ValidationResult  # noqa: F401
from .settings import Settings, get_settings  # noqa: F401
from .utils import get_logger  # noqa: F401
