"""Entrypoint for running the statement ingestion API with Uvicorn."""

from statement_ingestion.core.settings import get_settings
from statement_ingestion.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("statement_ingestion.main:app", host=settings.server_host, port=settings.server_port, reload=True)
