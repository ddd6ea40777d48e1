"""
Authoring Context

Responsibilities:
- Represents resume records edited in the form UI
- Converts records into renderable content trees

Owns: Resume record model, content tree model
Never: Renders pages or talks to the remote store
"""

from resumark.contexts.authoring.content_tree import ContentNode, ContentTree, NodeKind
from resumark.contexts.authoring.resume_data_structure import ResumeData
from resumark.contexts.authoring.tree_builder import build_content_tree

__all__ = [
    "ContentNode",
    "ContentTree",
    "NodeKind",
    "ResumeData",
    "build_content_tree",
]
