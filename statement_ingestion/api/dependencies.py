"""FastAPI dependencies for DI (settings, repository, storage, rules, batch runner).

This module provides dependency injection helpers so that API endpoints can be tested with
in-memory storage and a throwaway database.
"""

from functools import lru_cache

from fastapi import Depends

from statement_ingestion.core.db import BatchRepository, get_repository
from statement_ingestion.core.models import CategorizationRule
from statement_ingestion.core.settings import Settings, get_settings
from statement_ingestion.pipeline.rules import load_rules
from statement_ingestion.services.file_service import FileService
from statement_ingestion.services.s3_file_service import S3FileService
from statement_ingestion.workers.batch_runner import BatchRunner


@lru_cache
def get_file_service() -> FileService:
    """Provide the S3-backed FileService, created on first use."""
    return FileService(S3FileService())


def get_rules(
    repository: BatchRepository = Depends(get_repository), settings: Settings = Depends(get_settings)
) -> list[CategorizationRule]:
    """Provide the rule table: stored rules when present, otherwise the configured rules file."""
    return repository.load_rules() or load_rules(settings.rules_file)


def get_runner(
    file_service: FileService = Depends(get_file_service),
    repository: BatchRepository = Depends(get_repository),
    rules: list[CategorizationRule] = Depends(get_rules),
    settings: Settings = Depends(get_settings),
) -> BatchRunner:
    """Provide a BatchRunner wired to storage, persistence and the current rule table."""
    return BatchRunner(file_service, repository, rules, settings)
