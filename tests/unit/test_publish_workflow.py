"""Unit tests for the publish workflow."""

import asyncio

import httpx
import pytest

from resumark.contexts.authoring.resume_data_structure import PersonalInfo, ResumeData
from resumark.contexts.publishing.storage import PersistenceFailure
from resumark.contexts.publishing.workflow import pdf_key, publish_resume
from resumark.contexts.rendering.exceptions import RasterizationFailure
from resumark.utils.event_logging import read_pipeline_events


class FakeAdapter:
    """In-memory PersistenceAdapter with switchable failures."""

    def __init__(self, fail=(), upload_url="https://cdn.example.com/{key}", errors=None):
        self.fail = set(fail)
        self.errors = errors or {}
        self.upload_url = upload_url
        self.calls = []
        self.blobs = {}

    def _raise_error(self, stage):
        if stage in self.errors:
            raise self.errors[stage]

    async def save_record(self, resume):
        self.calls.append("save_record")
        self._raise_error("save_record")
        if "save_record" in self.fail:
            raise PersistenceFailure("save_record", "database unavailable")

    async def upload(self, blob, key):
        self.calls.append("upload")
        self._raise_error("upload")
        if "upload" in self.fail:
            raise PersistenceFailure("upload", "bucket not found")
        self.blobs[key] = blob
        return self.upload_url.format(key=key) if self.upload_url else None

    async def update_record_url(self, record_id, url):
        self.calls.append("update_record_url")
        self._raise_error("update_record_url")
        if "update_record_url" in self.fail:
            raise PersistenceFailure("update_record_url", "row locked")


@pytest.fixture
def resume():
    return ResumeData(id="r-1", title="Backend roles", personal_info=PersonalInfo(full_name="Jane Doe"))


def publish(resume, config, adapter, rasterizer):
    return asyncio.run(publish_resume(resume, config, adapter, rasterizer=rasterizer))


@pytest.mark.unit
def test_successful_publish(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter()

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.succeeded
    assert result.record_saved
    assert result.pdf_url == "https://cdn.example.com/r-1.pdf"
    assert result.artifact.filename == "Jane Doe_Resume.pdf"
    assert adapter.calls == ["save_record", "upload", "update_record_url"]
    assert adapter.blobs["r-1.pdf"] == result.artifact.blob
    assert resume.pdf_url == result.pdf_url


@pytest.mark.unit
def test_upload_failure_keeps_artifact_and_skips_url_update(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(fail={"upload"})

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.artifact.blob.startswith(b"%PDF")
    assert result.pdf_url is None
    assert result.failed_stages == ["upload"]
    assert "update_record_url" not in adapter.calls
    assert resume.pdf_url is None


@pytest.mark.unit
def test_upload_without_url_is_reported(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(upload_url=None)

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.failed_stages == ["upload"]
    assert "update_record_url" not in adapter.calls


@pytest.mark.unit
def test_url_update_failure_is_reported_without_retrying_upload(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(fail={"update_record_url"})

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.pdf_url == "https://cdn.example.com/r-1.pdf"
    assert result.failed_stages == ["update_record_url"]
    assert adapter.calls.count("upload") == 1
    assert resume.pdf_url is None


@pytest.mark.unit
def test_record_save_failure_does_not_stop_publishing(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(fail={"save_record"})

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert not result.record_saved
    assert result.failed_stages == ["save_record"]
    assert adapter.calls == ["save_record", "upload", "update_record_url"]


@pytest.mark.unit
def test_generation_failure_propagates_and_nothing_is_uploaded(resume, make_config, make_rasterizer):
    adapter = FakeAdapter()

    with pytest.raises(RasterizationFailure):
        publish(resume, make_config(), adapter, make_rasterizer(error=RuntimeError("boom")))

    assert adapter.calls == ["save_record"]


@pytest.mark.unit
def test_failures_are_logged_as_events(resume, make_config, capacity_rasterizer, tmp_path):
    events_file = tmp_path / "events.log"
    adapter = FakeAdapter(fail={"update_record_url"})

    publish(resume, make_config(events_file=str(events_file)), adapter, capacity_rasterizer)

    event_types = [event["event_type"] for event in read_pipeline_events(events_file, record_id="r-1")]
    assert event_types == ["upload_completed", "update_record_url_failed"]


@pytest.mark.unit
def test_pdf_key():
    assert pdf_key("r-1") == "r-1.pdf"


@pytest.mark.unit
def test_non_persistence_upload_error_keeps_artifact(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(errors={"upload": ConnectionError("network down")})

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.artifact.blob.startswith(b"%PDF")
    assert result.pdf_url is None
    assert result.failed_stages == ["upload"]
    assert isinstance(result.failures[0].original_error, ConnectionError)
    assert "network down" in result.failures[0].message
    assert "update_record_url" not in adapter.calls


@pytest.mark.unit
def test_http_errors_from_adapter_are_reported_per_stage(resume, make_config, capacity_rasterizer):
    adapter = FakeAdapter(
        errors={
            "save_record": httpx.ConnectError("connection refused"),
            "update_record_url": httpx.ReadTimeout("timed out"),
        }
    )

    result = publish(resume, make_config(), adapter, capacity_rasterizer)

    assert result.failed_stages == ["save_record", "update_record_url"]
    assert result.pdf_url == "https://cdn.example.com/r-1.pdf"
    assert adapter.calls == ["save_record", "upload", "update_record_url"]


@pytest.mark.unit
def test_unwritable_events_file_does_not_fail_publishing(resume, make_config, capacity_rasterizer, tmp_path):
    events_dir = tmp_path / "events"
    events_dir.mkdir()
    adapter = FakeAdapter(fail={"update_record_url"})

    result = publish(resume, make_config(events_file=str(events_dir)), adapter, capacity_rasterizer)

    assert result.artifact.page_count == 1
    assert result.failed_stages == ["update_record_url"]
