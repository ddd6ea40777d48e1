"""
Publishing Context

Responsibilities:
- Saves resume records to the remote store
- Uploads generated PDFs and links their public URL to the record

Owns: Persistence adapter interface, Supabase adapter, publish workflow
Never: Renders pages itself (delegates to the rendering context)
"""

from resumark.contexts.publishing.storage import (
    PersistenceAdapter,
    PersistenceFailure,
    SupabaseStorageAdapter,
)
from resumark.contexts.publishing.workflow import PublishResult, publish_resume

__all__ = [
    "PersistenceAdapter",
    "PersistenceFailure",
    "SupabaseStorageAdapter",
    "PublishResult",
    "publish_resume",
]
