"""
Remote persistence for resume records and generated PDFs.

PersistenceAdapter is the interface the publish workflow depends on.
SupabaseStorageAdapter implements it against a Supabase project over plain
HTTP (Storage API for the PDF, PostgREST for the record row):

    Storage:   POST  {url}/storage/v1/object/{bucket}/{key}       (upsert)
    Public:          {url}/storage/v1/object/public/{bucket}/{key}
    Records:   POST  {url}/rest/v1/{table}?on_conflict=id          (upsert)
               PATCH {url}/rest/v1/{table}?id=eq.{record_id}
               GET   {url}/rest/v1/{table}?select=*&order=last_updated.desc

Expected table columns: id, title, data (jsonb), last_updated, pdf_url.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

import httpx
from dotenv import load_dotenv

from resumark.contexts.authoring.resume_data_structure import ResumeData
from resumark.contexts.publishing.logger import _log_debug
from resumark.contexts.rendering.config import DEFAULT_HTTP_TIMEOUT_S

DEFAULT_BUCKET = "resume-pdfs"
DEFAULT_TABLE = "resumes"


class PersistenceFailure(Exception):
    """
    A persistence stage failed.

    Reported by the publish workflow; the generated artifact is kept and the
    failing stage is never retried.

    Attributes:
        stage: "save_record", "upload", "update_record_url" or "fetch_records"
        message: Error description
        original_error: Underlying HTTP or adapter error, if any
    """

    def __init__(self, stage: str, message: str, original_error: Optional[BaseException] = None):
        self.stage = stage
        self.message = message
        self.original_error = original_error

        parts = [f"[{stage}] {message}"]
        if original_error is not None:
            parts.append(f"Original error: {type(original_error).__name__}: {original_error}")

        super().__init__("\n".join(parts))


class PersistenceAdapter(Protocol):
    """
    Remote store for records and their PDFs.

    Implementations should raise PersistenceFailure naming the stage. The
    publish workflow also wraps any other exception from these calls into a
    PersistenceFailure, so an adapter error never discards a generated PDF.
    """

    async def save_record(self, resume: ResumeData) -> None:
        ...

    async def upload(self, blob: bytes, key: str) -> Optional[str]:
        """Store blob under key and return its public URL (None if it has none)."""
        ...

    async def update_record_url(self, record_id: str, url: str) -> None:
        ...


def _iso_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


def record_row(resume: ResumeData) -> Dict[str, Any]:
    """Database row for a resume record."""
    return {
        "id": resume.id,
        "title": resume.title,
        "data": resume.to_dict(),
        "last_updated": _iso_timestamp(resume.last_updated),
    }


def resume_from_row(row: Dict[str, Any]) -> ResumeData:
    """
    Rebuild a record from a database row.

    Table columns (id, pdf_url) take precedence over the JSON blob.
    """
    resume = ResumeData.from_dict(row.get("data") or {})
    resume.id = str(row.get("id") or resume.id)
    resume.pdf_url = row.get("pdf_url") or resume.pdf_url
    return resume


class SupabaseStorageAdapter:
    """
    PersistenceAdapter backed by Supabase Storage and PostgREST.

    Args:
        url: Project URL (e.g., https://xyz.supabase.co)
        key: API key sent as both apikey and bearer token
        bucket: Storage bucket holding the PDFs
        table: Table holding the resume records
        client: Shared httpx client (default: one short-lived client per request)
        timeout: Per-request timeout in seconds when no client is given

    Example:
        >>> adapter = SupabaseStorageAdapter.from_env()
        >>> url = await adapter.upload(artifact.blob, f"{resume.id}.pdf")
    """

    def __init__(
        self,
        url: str,
        key: str,
        bucket: str = DEFAULT_BUCKET,
        table: str = DEFAULT_TABLE,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_S,
    ):
        if not url or not key:
            raise ValueError("Supabase URL and key are required")
        self.url = url.rstrip("/")
        self.key = key
        self.bucket = bucket
        self.table = table
        self.client = client
        self.timeout = timeout

    @classmethod
    def from_env(cls, client: Optional[httpx.AsyncClient] = None) -> "SupabaseStorageAdapter":
        """
        Build an adapter from SUPABASE_URL / SUPABASE_KEY (.env is loaded first).

        Raises:
            ValueError: If either variable is missing
        """
        load_dotenv()
        url = os.getenv("SUPABASE_URL", "")
        key = os.getenv("SUPABASE_KEY", "")
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set (environment or .env)")
        return cls(url, key, client=client)

    @property
    def _headers(self) -> Dict[str, str]:
        return {"apikey": self.key, "Authorization": f"Bearer {self.key}"}

    def public_url(self, key: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{key}"

    async def _request(self, stage: str, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request; any transport or HTTP status error becomes PersistenceFailure."""
        headers = {**self._headers, **kwargs.pop("headers", {})}
        _log_debug(f"{method} {url}")
        try:
            if self.client is not None:
                response = await self.client.request(method, url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PersistenceFailure(stage, f"HTTP {e.response.status_code}: {e.response.text[:200]}", e) from e
        except httpx.HTTPError as e:
            raise PersistenceFailure(stage, f"Request to {url} failed", e) from e
        return response

    async def save_record(self, resume: ResumeData) -> None:
        """Upsert the record row, keyed on id."""
        await self._request(
            "save_record",
            "POST",
            f"{self.url}/rest/v1/{self.table}",
            params={"on_conflict": "id"},
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            json=record_row(resume),
        )

    async def upload(self, blob: bytes, key: str) -> Optional[str]:
        """Upload (overwriting) the PDF and return its public URL."""
        await self._request(
            "upload",
            "POST",
            f"{self.url}/storage/v1/object/{self.bucket}/{key}",
            headers={"Content-Type": "application/pdf", "x-upsert": "true"},
            content=blob,
        )
        return self.public_url(key)

    async def update_record_url(self, record_id: str, url: str) -> None:
        await self._request(
            "update_record_url",
            "PATCH",
            f"{self.url}/rest/v1/{self.table}",
            params={"id": f"eq.{record_id}"},
            headers={"Prefer": "return=minimal"},
            json={"pdf_url": url},
        )

    async def fetch_records(self) -> List[ResumeData]:
        """All stored records, most recently updated first."""
        response = await self._request(
            "fetch_records",
            "GET",
            f"{self.url}/rest/v1/{self.table}",
            params={"select": "*", "order": "last_updated.desc"},
        )
        try:
            rows = response.json()
        except ValueError as e:
            raise PersistenceFailure("fetch_records", "Response was not JSON", e) from e
        return [resume_from_row(row) for row in rows]
