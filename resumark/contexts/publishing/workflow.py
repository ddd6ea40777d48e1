"""
Publish workflow: persist a resume record together with its generated PDF.

Stages, in order:
    save_record        upsert the structured record (failure reported, continues)
    generate           render the PDF (fatal errors propagate, nothing is uploaded)
    upload             store the PDF under <record id>.pdf and obtain its URL
    update_record_url  write the URL back to the record (skipped if upload failed)

Persistence failures (any error an adapter raises) never discard the generated
artifact and are never retried; they are collected on the PublishResult so the
caller can report them separately from the download itself.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

from resumark.contexts.authoring.resume_data_structure import ResumeData
from resumark.contexts.authoring.tree_builder import build_content_tree
from resumark.contexts.publishing.logger import _log_error, _log_info, _log_warning, log_publish_result
from resumark.contexts.publishing.storage import PersistenceAdapter, PersistenceFailure
from resumark.contexts.rendering.config import RenderConfig
from resumark.contexts.rendering.pipeline import PdfArtifact, Saver, generate
from resumark.contexts.rendering.rasterizer import ContentRasterizer
from resumark.utils.event_logging import log_pipeline_event

PDF_KEY_SUFFIX = ".pdf"

T = TypeVar("T")


@dataclass
class PublishResult:
    """
    Outcome of publish_resume().

    Attributes:
        artifact: The generated PDF (always present)
        pdf_url: Public URL of the uploaded PDF (None if upload failed)
        record_saved: Whether the record upsert succeeded
        failures: Persistence failures, in stage order
    """

    artifact: PdfArtifact
    pdf_url: Optional[str] = None
    record_saved: bool = False
    failures: List[PersistenceFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failed_stages(self) -> List[str]:
        return [failure.stage for failure in self.failures]


def pdf_key(record_id: str) -> str:
    return f"{record_id}{PDF_KEY_SUFFIX}"


async def _run_stage(stage: str, call: Callable[[], Awaitable[T]]) -> T:
    """Await one adapter call, turning any error it raises into a PersistenceFailure."""
    try:
        return await call()
    except PersistenceFailure:
        raise
    except Exception as e:
        raise PersistenceFailure(stage, f"{type(e).__name__}: {e}", e) from e


def _emit_event(events_file: Optional[Path], event_type: str, record_id: str, **extra_fields) -> None:
    """Append a pipeline event; a failed write is logged and never fails publishing."""
    try:
        log_pipeline_event(events_file, event_type, record_id, "publishing", **extra_fields)
    except Exception as e:
        _log_warning(f"Could not record {event_type} event in {events_file}: {type(e).__name__}: {e}")


async def publish_resume(
    resume: ResumeData,
    config: RenderConfig,
    adapter: PersistenceAdapter,
    rasterizer: Optional[ContentRasterizer] = None,
    saver: Optional[Saver] = None,
) -> PublishResult:
    """
    Save a resume record, render its PDF, upload it, and link it to the record.

    Args:
        resume: Resume record; its pdf_url is updated when the URL is written back
        config: Render configuration
        adapter: Remote store
        rasterizer: Content rasterizer passed through to generate()
        saver: Local save action passed through to generate()

    Returns:
        PublishResult with the artifact and any persistence failures

    Raises:
        RasterizationFailure: If the content could not be rasterized
        ArtifactEncodingFailure: If the pages could not be serialized
    """
    events_file = config.events_path
    failures: List[PersistenceFailure] = []

    def report(failure: PersistenceFailure) -> None:
        failures.append(failure)
        _log_error(f"{failure.stage} failed for {resume.id}: {failure.message}")
        _emit_event(events_file, f"{failure.stage}_failed", resume.id, error=failure.message)

    _log_info(f"Publishing {resume.title} ({resume.id})")

    record_saved = False
    try:
        await _run_stage("save_record", lambda: adapter.save_record(resume))
        record_saved = True
    except PersistenceFailure as e:
        report(e)

    tree = build_content_tree(resume, include_preview_overlays=False)
    artifact = await generate(tree, resume.subject_name, config, rasterizer=rasterizer, saver=saver)

    pdf_url: Optional[str] = None
    try:
        pdf_url = await _run_stage("upload", lambda: adapter.upload(artifact.blob, pdf_key(resume.id)))
        if not pdf_url:
            raise PersistenceFailure("upload", "Store returned no URL for the uploaded PDF")
    except PersistenceFailure as e:
        pdf_url = None
        report(e)
    else:
        _emit_event(events_file, "upload_completed", resume.id, pdf_url=pdf_url)

    if pdf_url:
        try:
            await _run_stage("update_record_url", lambda: adapter.update_record_url(resume.id, pdf_url))
        except PersistenceFailure as e:
            report(e)
        else:
            resume.pdf_url = pdf_url
            _emit_event(events_file, "record_url_updated", resume.id, pdf_url=pdf_url)

    result = PublishResult(artifact=artifact, pdf_url=pdf_url, record_saved=record_saved, failures=failures)
    log_publish_result(resume.id, pdf_url, result.failed_stages)
    return result
