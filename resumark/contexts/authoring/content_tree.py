"""
Content Tree Data Structures

Defines the renderable structure of a resume: an ordered, possibly nested
sequence of nodes (sections, headings, paragraphs, bullet lists, labeled
key/value lines). The rendering context reads these trees but never mutates
them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional


class NodeKind(str, Enum):
    """Kinds of renderable nodes."""

    SECTION = "section"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BULLET_LIST = "bullet_list"
    BULLET = "bullet"
    KEY_VALUE = "key_value"
    OVERLAY_PLACEHOLDER = "overlay_placeholder"


# Kinds whose children are laid out in place of the node itself
CONTAINER_KINDS = {NodeKind.SECTION, NodeKind.BULLET_LIST}


@dataclass
class ContentNode:
    """
    One renderable node.

    Attributes:
        kind: Node kind
        text: Text content (heading text, paragraph, bullet line, value of a key/value line)
        label: Label of a key/value line (e.g., "Email")
        level: Heading level (1 = document title, 2 = section title, 3 = entry title)
        children: Nested nodes for containers (sections, bullet lists)
        atomic: Must not be split across a page boundary
        keep_with_next: Must start on the same page as the following unit
        preview_only: On-screen overlay placeholder, removed before rasterization
    """

    kind: NodeKind
    text: str = ""
    label: Optional[str] = None
    level: int = 2
    children: List["ContentNode"] = field(default_factory=list)
    atomic: bool = True
    keep_with_next: bool = False
    preview_only: bool = False

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    def walk(self) -> Iterator["ContentNode"]:
        """Yield this node and all descendants, depth-first in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class ContentTree:
    """
    Ordered sequence of top-level content nodes.

    Attributes:
        nodes: Top-level nodes in document order
        subject_name: Person the document is about (used for the filename)
    """

    nodes: List[ContentNode] = field(default_factory=list)
    subject_name: str = ""

    def walk(self) -> Iterator[ContentNode]:
        """Yield every node in document order."""
        for node in self.nodes:
            yield from node.walk()

    def is_empty(self) -> bool:
        return not self.nodes


# Convenience constructors


def heading(text: str, level: int = 2) -> ContentNode:
    """Heading that never ends up alone at the bottom of a page."""
    return ContentNode(kind=NodeKind.HEADING, text=text, level=level, keep_with_next=True)


def paragraph(text: str, atomic: bool = False) -> ContentNode:
    """Paragraph; splittable between lines unless atomic."""
    return ContentNode(kind=NodeKind.PARAGRAPH, text=text, atomic=atomic)


def bullet(text: str) -> ContentNode:
    return ContentNode(kind=NodeKind.BULLET, text=text)


def bullet_list(items: List[str]) -> ContentNode:
    return ContentNode(kind=NodeKind.BULLET_LIST, children=[bullet(item) for item in items], atomic=False)


def key_value(label: str, value: str) -> ContentNode:
    return ContentNode(kind=NodeKind.KEY_VALUE, label=label, text=value)


def section(children: List[ContentNode], atomic: bool = False) -> ContentNode:
    return ContentNode(kind=NodeKind.SECTION, children=children, atomic=atomic)


def overlay_placeholder(name: str) -> ContentNode:
    """On-screen stand-in for an overlay (e.g., "header", "watermark")."""
    return ContentNode(kind=NodeKind.OVERLAY_PLACEHOLDER, text=name, preview_only=True)
