"""Application factory for the statement ingestion API.

This module configures logging, creates the database tables on startup, and exposes the Scalar API
reference endpoint for interactive OpenAPI documentation.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from statement_ingestion.api.routes import router
from statement_ingestion.core.db import get_engine, init_db
from statement_ingestion.core.settings import get_settings
from statement_ingestion.core.utils import ensure_dir, get_logger


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure console and file logging for the whole statement-ingestion logger tree."""
    settings = get_settings()
    ensure_dir(Path(settings.log_file).parent)
    file_handler = logging.FileHandler(settings.log_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    # Module loggers do not propagate, so each one gets the file handler (not colorized)
    names = ["statement-ingestion"] + [n for n in logging.root.manager.loggerDict if n.startswith("statement-ingestion.")]
    for name in names:
        logger = get_logger(name)
        logger.setLevel(logging.INFO)
        if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            logger.addHandler(file_handler)


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler that creates the batches and category_rules tables."""
    _ = app
    try:
        init_db(get_engine())
    except SQLAlchemyError:
        get_logger("statement-ingestion.api").exception("Failed to create database tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Statement Ingestion API",
    description="""
    The Statement Ingestion API turns bank statement documents into a validated, deduplicated and
    categorized ledger of transactions.

    **Endpoints:**
    - `POST /batches`: Upload statements and start a batch. Returns a `batch_id`.
    - `GET /batches/{{batch_id}}/status`: Batch status and progress counters.
    - `GET /batches/{{batch_id}}`: Per-document outcomes and aggregate statistics.
    - `GET /batches/{{batch_id}}/download`: Categorized transactions as CSV.
    - `POST /batches/{{batch_id}}/cancel`: Stop a running batch.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> HTMLResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)
