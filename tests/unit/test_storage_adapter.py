"""Unit tests for the Supabase persistence adapter (HTTP faked with httpx.MockTransport)."""

import asyncio
import json

import httpx
import pytest

from resumark.contexts.authoring.resume_data_structure import ResumeData
from resumark.contexts.publishing.storage import (
    PersistenceFailure,
    SupabaseStorageAdapter,
    record_row,
    resume_from_row,
)
from resumark.contexts.rendering.config import DEFAULT_HTTP_TIMEOUT_S, RenderConfig

PROJECT_URL = "https://project.supabase.co"
API_KEY = "anon-key"


def run_with_adapter(handler, action):
    """Run action(adapter) against a mocked Supabase project; return (result, requests)."""
    requests = []

    def recording_handler(request):
        requests.append(request)
        return handler(request)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(recording_handler)) as client:
            adapter = SupabaseStorageAdapter(PROJECT_URL + "/", API_KEY, client=client)
            return await action(adapter)

    return asyncio.run(run()), requests


def ok(request):
    return httpx.Response(200, json={})


@pytest.mark.unit
def test_upload_posts_pdf_with_upsert_and_returns_public_url():
    url, requests = run_with_adapter(ok, lambda adapter: adapter.upload(b"%PDF-1.4", "r-1.pdf"))

    assert url == f"{PROJECT_URL}/storage/v1/object/public/resume-pdfs/r-1.pdf"
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/storage/v1/object/resume-pdfs/r-1.pdf"
    assert request.headers["x-upsert"] == "true"
    assert request.headers["content-type"] == "application/pdf"
    assert request.headers["authorization"] == f"Bearer {API_KEY}"
    assert request.headers["apikey"] == API_KEY
    assert request.content == b"%PDF-1.4"


@pytest.mark.unit
def test_update_record_url_patches_matching_row():
    _, requests = run_with_adapter(
        ok, lambda adapter: adapter.update_record_url("r-1", "https://cdn/r-1.pdf")
    )

    request = requests[0]
    assert request.method == "PATCH"
    assert request.url.path == "/rest/v1/resumes"
    assert request.url.params["id"] == "eq.r-1"
    assert json.loads(request.content) == {"pdf_url": "https://cdn/r-1.pdf"}


@pytest.mark.unit
def test_save_record_upserts_on_id():
    resume = ResumeData(id="r-1", title="Backend roles", last_updated=0)

    _, requests = run_with_adapter(ok, lambda adapter: adapter.save_record(resume))

    request = requests[0]
    assert request.method == "POST"
    assert request.url.params["on_conflict"] == "id"
    assert "resolution=merge-duplicates" in request.headers["prefer"]
    body = json.loads(request.content)
    assert body["id"] == "r-1"
    assert body["title"] == "Backend roles"
    assert body["last_updated"] == "1970-01-01T00:00:00+00:00"
    assert body["data"]["title"] == "Backend roles"


@pytest.mark.unit
def test_http_error_status_becomes_persistence_failure():
    def handler(request):
        return httpx.Response(403, text="new row violates row-level security policy")

    with pytest.raises(PersistenceFailure) as exc_info:
        run_with_adapter(handler, lambda adapter: adapter.upload(b"%PDF", "r-1.pdf"))

    assert exc_info.value.stage == "upload"
    assert "403" in exc_info.value.message
    assert isinstance(exc_info.value.original_error, httpx.HTTPStatusError)


@pytest.mark.unit
def test_transport_error_becomes_persistence_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PersistenceFailure) as exc_info:
        run_with_adapter(handler, lambda adapter: adapter.update_record_url("r-1", "u"))

    assert exc_info.value.stage == "update_record_url"


@pytest.mark.unit
def test_fetch_records_orders_and_prefers_table_columns():
    rows = [
        {
            "id": "r-2",
            "pdf_url": "https://cdn/r-2.pdf",
            "data": {"id": "stale", "title": "Newest", "personalInfo": {"fullName": "Ada"}},
        },
        {"id": "r-1", "pdf_url": None, "data": {"title": "Older", "pdfUrl": "https://cdn/old.pdf"}},
    ]

    def handler(request):
        return httpx.Response(200, json=rows)

    records, requests = run_with_adapter(handler, lambda adapter: adapter.fetch_records())

    assert requests[0].url.params["order"] == "last_updated.desc"
    assert [record.id for record in records] == ["r-2", "r-1"]
    assert records[0].pdf_url == "https://cdn/r-2.pdf"
    assert records[1].pdf_url == "https://cdn/old.pdf"
    assert records[0].subject_name == "Ada"


@pytest.mark.unit
def test_record_row_round_trip():
    resume = ResumeData(id="r-9", title="Data roles")

    restored = resume_from_row({**record_row(resume), "pdf_url": None})

    assert restored == resume


@pytest.mark.unit
def test_from_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", PROJECT_URL)
    monkeypatch.setenv("SUPABASE_KEY", API_KEY)

    adapter = SupabaseStorageAdapter.from_env()

    assert adapter.url == PROJECT_URL
    assert adapter.bucket == "resume-pdfs"
    assert adapter.table == "resumes"
    assert adapter.timeout == DEFAULT_HTTP_TIMEOUT_S == RenderConfig().asset_timeout_s


@pytest.mark.unit
def test_from_env_requires_credentials(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")

    with pytest.raises(ValueError):
        SupabaseStorageAdapter.from_env()
