"""
resumark - Resume export with stamped header and watermark overlays

Turns structured resume content into a paginated A4 PDF, stamping a header band
and a centered watermark onto every page, and optionally publishes the result
to a remote store.

Architecture:
- Authoring Context: Resume record model and content tree construction
- Rendering Context: Sanitizing, rasterizing, overlay compositing, PDF generation
- Publishing Context: Remote persistence of the record and generated PDF
"""

__version__ = "0.1.0"
