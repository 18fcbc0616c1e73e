"""Workers package: batch orchestration and background batch execution."""

from .batch_runner import BatchOrchestrator, BatchRunner, run_batch  # noqa: F401
