"""API integration tests for the statement ingestion service."""

from collections.abc import Iterator

import pytest
from conftest import NOT_A_STATEMENT, STATEMENT_TEXT, FakeStore
from fastapi.testclient import TestClient

from main import app
from statement_ingestion.api.dependencies import get_file_service
from statement_ingestion.core.db import get_repository
from statement_ingestion.services.file_service import FileService

client = TestClient(app)
HTTP_200_OK = 200
HTTP_202_ACCEPTED = 202
HTTP_400_BAD_REQUEST = 400
HTTP_404_NOT_FOUND = 404


@pytest.fixture(autouse=True)
def _overrides(repository) -> Iterator[None]:
    """Run every request against in-memory storage and a throwaway database."""
    store = FileService(FakeStore())
    app.dependency_overrides[get_file_service] = lambda: store
    app.dependency_overrides[get_repository] = lambda: repository
    yield
    app.dependency_overrides.clear()


def _upload(*files: tuple[str, str]) -> object:
    payload = [("files", (name, text.encode("utf-8"), "text/plain")) for name, text in files]
    return client.post("/batches", files=payload)


def test_health() -> None:
    """Test the /health endpoint returns status ok."""
    response = client.get("/health")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"status": "ok"}:
        msg = f"Expected response {{'status': 'ok'}}, got {response.json()}"
        raise AssertionError(msg)


def test_scalar_docs() -> None:
    """Test the /scalar endpoint returns OpenAPI docs."""
    response = client.get("/scalar")
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}"
        raise AssertionError(msg)
    if "openapi" not in response.text:
        msg = "Expected 'openapi' in response text"
        raise AssertionError(msg)


def test_batch_lifecycle() -> None:
    """Upload, follow, summarize and download a batch."""
    response = _upload(("march.txt", STATEMENT_TEXT), ("party.txt", NOT_A_STATEMENT))
    if response.status_code != HTTP_202_ACCEPTED:
        msg = f"Expected status {HTTP_202_ACCEPTED}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)
    batch_id = response.json()["batch_id"]

    status = client.get(f"/batches/{batch_id}/status").json()
    if status["status"] != "completed" or (status["uploaded"], status["validated"], status["processed"]) != (2, 1, 1):
        msg = f"Unexpected status {status}"
        raise AssertionError(msg)

    body = client.get(f"/batches/{batch_id}").json()
    outcomes = {doc["name"]: doc["status"] for doc in body["documents"]}
    if outcomes != {"march.txt": "completed", "party.txt": "validation_failed"}:
        msg = f"Unexpected document outcomes {outcomes}"
        raise AssertionError(msg)
    if body["summary"]["total_transactions"] != 4:
        msg = f"Unexpected summary {body['summary']}"
        raise AssertionError(msg)

    download = client.get(f"/batches/{batch_id}/download")
    if download.status_code != HTTP_200_OK or "Banking Subs Fee" not in download.text:
        msg = f"Expected the CSV to contain the transactions, got {download.text}"
        raise AssertionError(msg)
    single = client.get(f"/batches/{batch_id}/download", params={"document": "march.txt"})
    if single.status_code != HTTP_200_OK or not single.text.startswith("Transaction Date,"):
        msg = f"Unexpected document CSV {single.text}"
        raise AssertionError(msg)
    missing = client.get(f"/batches/{batch_id}/download", params={"document": "party.txt"})
    if missing.status_code != HTTP_404_NOT_FOUND:
        msg = f"Expected status {HTTP_404_NOT_FOUND}, got {missing.status_code}"
        raise AssertionError(msg)

    cancel = client.post(f"/batches/{batch_id}/cancel").json()
    if cancel["cancelled"]:
        msg = "A finished batch cannot be cancelled"
        raise AssertionError(msg)


def test_batch_without_valid_documents_reports_error() -> None:
    """A batch with nothing to process ends in the error state."""
    batch_id = _upload(("party.txt", NOT_A_STATEMENT)).json()["batch_id"]
    status = client.get(f"/batches/{batch_id}/status").json()
    if status["status"] != "error" or "validation" not in status["error"]:
        msg = f"Unexpected status {status}"
        raise AssertionError(msg)


def test_rejected_uploads() -> None:
    """Unsupported file types and duplicate names are refused."""
    response = client.post("/batches", files=[("files", ("notes.docx", b"data", "application/msword"))])
    if response.status_code != HTTP_400_BAD_REQUEST:
        msg = f"Expected status {HTTP_400_BAD_REQUEST}, got {response.status_code}"
        raise AssertionError(msg)
    response = _upload(("a.txt", STATEMENT_TEXT), ("a.txt", STATEMENT_TEXT))
    if response.status_code != HTTP_400_BAD_REQUEST:
        msg = f"Expected status {HTTP_400_BAD_REQUEST}, got {response.status_code}"
        raise AssertionError(msg)


def test_unknown_batch() -> None:
    """Unknown batch ids are reported as not found."""
    for method, path in (("get", "/batches/nope/status"), ("get", "/batches/nope"), ("post", "/batches/nope/cancel")):
        response = getattr(client, method)(path)
        if response.status_code != HTTP_404_NOT_FOUND:
            msg = f"Expected status {HTTP_404_NOT_FOUND} for {path}, got {response.status_code}"
            raise AssertionError(msg)
