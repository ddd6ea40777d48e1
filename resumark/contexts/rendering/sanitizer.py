"""
Content sanitizing.

Overlays are stamped onto finished pages by the compositor, so the on-screen
placeholders for them must not reach the rasterizer. sanitize() returns a new
tree without those nodes; the caller's tree is left untouched.
"""

from dataclasses import replace
from typing import List

from resumark.contexts.authoring.content_tree import ContentNode, ContentTree


def _strip(nodes: List[ContentNode]) -> List[ContentNode]:
    return [replace(node, children=_strip(node.children)) for node in nodes if not node.preview_only]


def sanitize(tree: ContentTree) -> ContentTree:
    """
    Copy a content tree, dropping every preview-only node and its subtree.

    Idempotent: sanitize(sanitize(tree)) == sanitize(tree).

    Args:
        tree: Caller-owned content tree (not modified)

    Returns:
        New ContentTree sharing no node objects with the input
    """
    return ContentTree(nodes=_strip(tree.nodes), subject_name=tree.subject_name)
