"""
Pipeline event logging utilities (Tier 2 logging).

Appends one JSON object per line to an events file so that generation and
publishing runs can be audited or replayed independently of the detailed
loguru logs.

Usage:
    from resumark.utils.event_logging import log_pipeline_event

    log_pipeline_event(
        events_file=Path("outs/logs/pipeline_events.log"),
        event_type="upload_completed",
        record_id="4f1c...",
        source="publishing",
        pdf_url="https://...",
    )
"""

import json
from pathlib import Path
from typing import Dict, List, Optional

from resumark.utils.timestamp import now_exact


def log_pipeline_event(
    events_file: Optional[Path],
    event_type: str,
    record_id: str,
    source: str,
    **extra_fields,
) -> None:
    """
    Log an event to the pipeline event log.

    Does nothing when ``events_file`` is None, so callers can pass the
    configured path through unconditionally.

    Args:
        events_file: JSON Lines file to append to (None disables event logging)
        event_type: Type of event (e.g., "generation_completed", "upload_failed")
        record_id: Resume record identifier
        source: Event source (e.g., "rendering", "publishing", "cli")
        **extra_fields: Additional event-specific fields (must be JSON serializable)
    """
    if events_file is None:
        return

    events_file = Path(events_file)
    events_file.parent.mkdir(parents=True, exist_ok=True)

    event = {
        "timestamp": now_exact(),
        "event_type": event_type,
        "record_id": record_id,
        "source": source,
        **extra_fields,
    }

    with events_file.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, default=str) + "\n")


def read_pipeline_events(
    events_file: Path,
    record_id: Optional[str] = None,
    event_type: Optional[str] = None,
) -> List[Dict]:
    """
    Read events back from the log, optionally filtered.

    Args:
        events_file: JSON Lines file written by log_pipeline_event()
        record_id: Only return events for this record
        event_type: Only return events of this type

    Returns:
        Events in file order (empty if the file does not exist)
    """
    events_file = Path(events_file)
    if not events_file.exists():
        return []

    events = []
    with events_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            event = json.loads(line)
            if record_id is not None and event.get("record_id") != record_id:
                continue
            if event_type is not None and event.get("event_type") != event_type:
                continue
            events.append(event)

    return events
