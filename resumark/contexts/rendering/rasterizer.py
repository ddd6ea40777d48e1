"""
Content rasterization.

The compositor depends only on the ContentRasterizer protocol: given a
sanitized content tree and a page geometry, return one Pillow image per page,
never splitting an atomic unit across pages and returning at least one page
even for an empty tree.

PillowRasterizer is the bundled implementation: a single-column flowing text
layout. It works in three steps:

1. layout_blocks(): turn content nodes into LayoutBlocks (unbreakable runs of
   text lines with a height in pixels)
2. paginate(): greedily assign blocks to pages of fixed content height
3. _draw_page(): draw each page's blocks onto a white surface
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from resumark.contexts.authoring.content_tree import ContentNode, ContentTree, NodeKind
from resumark.contexts.rendering.config import MarginsConfig, RenderConfig, TypographyConfig
from resumark.contexts.rendering.exceptions import UnsupportedContentError
from resumark.contexts.rendering.geometry import A4_WIDTH_MM, MM_PER_INCH, PageGeometry

POINTS_PER_INCH = 72.0
BULLET_PREFIX = "• "
TEXT_COLOR = (33, 33, 33)
HEADING_COLOR = (22, 70, 157)


@dataclass(frozen=True)
class RasterizeOptions:
    """Options passed through to the rasterizer."""

    avoid_splitting_atomic_units: bool = True


class ContentRasterizer(Protocol):
    """Anything that can turn a content tree into page surfaces."""

    def rasterize(
        self, tree: ContentTree, geometry: PageGeometry, options: RasterizeOptions
    ) -> List[Image.Image]:
        ...


@dataclass
class TextLine:
    """One line of text positioned relative to its block's top-left corner."""

    text: str
    font_key: str
    x: float = 0.0
    y: float = 0.0


@dataclass
class LayoutBlock:
    """
    Unbreakable unit of laid-out content.

    Attributes:
        height: Height in pixels, excluding space_before
        space_before: Gap above the block; dropped at the top of a page
        keep_with_next: Move to the next page together with the following block
        lines: Text lines to draw
        excerpt: Leading text, for diagnostics
    """

    height: float
    space_before: float = 0.0
    keep_with_next: bool = False
    lines: List[TextLine] = field(default_factory=list)
    excerpt: str = ""


def merge_blocks(blocks: Sequence[LayoutBlock], keep_with_next: bool = False) -> LayoutBlock:
    """Stack blocks vertically into a single unbreakable block."""
    merged = LayoutBlock(height=0.0, keep_with_next=keep_with_next)
    for index, block in enumerate(blocks):
        if index == 0:
            merged.space_before = block.space_before
        else:
            merged.height += block.space_before
        for line in block.lines:
            merged.lines.append(TextLine(line.text, line.font_key, line.x, line.y + merged.height))
        merged.height += block.height
        if not merged.excerpt:
            merged.excerpt = block.excerpt
    return merged


def paginate(blocks: Sequence[LayoutBlock], capacity: float) -> List[List[LayoutBlock]]:
    """
    Assign blocks to pages without splitting any block.

    Blocks are placed in order; a block that does not fit on the current page
    starts a new one. Trailing keep_with_next blocks (headings) move along with
    it, unless that would leave the previous page empty or still not fit.

    Args:
        blocks: Blocks in document order
        capacity: Content height available per page, in pixels

    Returns:
        Pages in order, each a list of blocks; always at least one page

    Raises:
        UnsupportedContentError: If a single block is taller than capacity
    """
    pages: List[List[LayoutBlock]] = [[]]
    used = 0.0

    for block in blocks:
        if block.height > capacity:
            raise UnsupportedContentError(block.height, capacity, block.excerpt)

        current = pages[-1]
        needed = block.height + (block.space_before if current else 0.0)
        if used + needed <= capacity:
            current.append(block)
            used += needed
            continue

        carried: List[LayoutBlock] = []
        while len(current) > 1 and current[-1].keep_with_next:
            carried.insert(0, current.pop())

        carried_height = _stack_height(carried)
        if carried and carried_height + block.space_before + block.height > capacity:
            current.extend(carried)
            carried = []
            carried_height = 0.0

        pages.append(carried + [block])
        used = carried_height + (block.space_before if carried else 0.0) + block.height

    return pages


def _stack_height(blocks: Sequence[LayoutBlock]) -> float:
    return sum(block.height + (block.space_before if index else 0.0) for index, block in enumerate(blocks))


def _break_word(word: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """Split a word wider than max_width into pieces that fit (at least one character each)."""
    pieces: List[str] = []
    current = ""
    for char in word:
        if current and font.getlength(current + char) > max_width:
            pieces.append(current)
            current = char
        else:
            current += char
    pieces.append(current)
    return pieces


def wrap_text(text: str, font: ImageFont.ImageFont, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Explicit newlines are kept. A single word wider than max_width (a long URL,
    say) is hard-broken across lines so nothing runs past the right margin.
    """
    lines: List[str] = []
    for raw_line in text.splitlines() or [""]:
        words = raw_line.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            if font.getlength(word) > max_width:
                if current:
                    lines.append(current)
                pieces = _break_word(word, font, max_width)
                lines.extend(pieces[:-1])
                current = pieces[-1]
                continue
            candidate = f"{current} {word}" if current else word
            if current and font.getlength(candidate) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


class PillowRasterizer:
    """
    Single-column text rasterizer drawing with Pillow.

    Font sizes are given in points and margins in millimetres (see
    TypographyConfig / MarginsConfig); both are scaled to the page geometry
    passed to rasterize(), so the same instance works at any resolution.

    Example:
        >>> rasterizer = PillowRasterizer.from_config(config)
        >>> pages = rasterizer.rasterize(tree, config.geometry, RasterizeOptions())
    """

    def __init__(self, typography: Optional[TypographyConfig] = None, margins: Optional[MarginsConfig] = None):
        self.typography = typography or TypographyConfig()
        self.margins = margins or MarginsConfig()

    @classmethod
    def from_config(cls, config: RenderConfig) -> "PillowRasterizer":
        return cls(typography=config.typography, margins=config.margins_mm)

    # Scaling

    @staticmethod
    def _points_to_px(points: float, geometry: PageGeometry) -> int:
        dpi = geometry.width_px / (A4_WIDTH_MM / MM_PER_INCH)
        return max(1, round(points * dpi / POINTS_PER_INCH))

    def _font_points(self) -> Dict[str, float]:
        return {
            "title": self.typography.title_font_size,
            "heading": self.typography.heading_font_size,
            "subheading": (self.typography.heading_font_size + self.typography.base_font_size) / 2,
            "body": self.typography.base_font_size,
        }

    def _load_fonts(self, geometry: PageGeometry) -> Dict[str, ImageFont.ImageFont]:
        fonts = {}
        for key, points in self._font_points().items():
            size = self._points_to_px(points, geometry)
            if self.typography.font_path:
                fonts[key] = ImageFont.truetype(self.typography.font_path, size)
            else:
                fonts[key] = ImageFont.load_default(size=size)
        return fonts

    def _line_height(self, font_key: str, geometry: PageGeometry) -> float:
        points = self._font_points()[font_key]
        return self._points_to_px(points, geometry) * self.typography.line_spacing

    def content_box(self, geometry: PageGeometry) -> Tuple[float, float, float, float]:
        """(left, top, width, height) of the content area in pixels."""
        left = geometry.mm_to_px(self.margins.left)
        top = geometry.mm_to_px(self.margins.top)
        width = geometry.width_px - left - geometry.mm_to_px(self.margins.right)
        height = geometry.height_px - top - geometry.mm_to_px(self.margins.bottom)
        return left, top, width, height

    # Layout

    def layout_blocks(
        self, tree: ContentTree, geometry: PageGeometry, options: RasterizeOptions
    ) -> List[LayoutBlock]:
        """Lay out every node of the tree into blocks, in document order."""
        fonts = self._load_fonts(geometry)
        _, _, width, _ = self.content_box(geometry)
        blocks: List[LayoutBlock] = []
        for node in tree.nodes:
            blocks.extend(self._layout_node(node, fonts, width, geometry, options))
        return blocks

    def _text_block(
        self,
        lines: List[str],
        font_key: str,
        geometry: PageGeometry,
        indent: float = 0.0,
        first_indent: float = 0.0,
        space_before: float = 0.0,
        keep_with_next: bool = False,
    ) -> LayoutBlock:
        line_height = self._line_height(font_key, geometry)
        text_lines = [
            TextLine(text, font_key, x=first_indent if index == 0 else indent, y=index * line_height)
            for index, text in enumerate(lines)
        ]
        return LayoutBlock(
            height=line_height * len(lines),
            space_before=space_before,
            keep_with_next=keep_with_next,
            lines=text_lines,
            excerpt=" ".join(lines)[:80],
        )

    def _layout_node(
        self,
        node: ContentNode,
        fonts: Dict[str, ImageFont.ImageFont],
        width: float,
        geometry: PageGeometry,
        options: RasterizeOptions,
    ) -> List[LayoutBlock]:
        keep_whole = node.atomic and options.avoid_splitting_atomic_units
        body_gap = self._line_height("body", geometry) * 0.25

        if node.kind == NodeKind.OVERLAY_PLACEHOLDER:
            return []

        if node.is_container:
            children: List[LayoutBlock] = []
            for child in node.children:
                children.extend(self._layout_node(child, fonts, width, geometry, options))
            if node.kind == NodeKind.SECTION and children:
                children[0].space_before = max(children[0].space_before, self._line_height("body", geometry))
            if keep_whole and children:
                return [merge_blocks(children, keep_with_next=node.keep_with_next)]
            return children

        if node.kind == NodeKind.HEADING:
            font_key = {1: "title"}.get(node.level, "heading" if node.level == 2 else "subheading")
            lines = wrap_text(node.text, fonts[font_key], width)
            block = self._text_block(
                lines, font_key, geometry, space_before=body_gap * 2, keep_with_next=node.keep_with_next
            )
            return [block]

        if node.kind == NodeKind.BULLET:
            indent = fonts["body"].getlength(BULLET_PREFIX)
            lines = wrap_text(node.text, fonts["body"], width - indent)
            lines[0] = BULLET_PREFIX + lines[0]
            block = self._text_block(
                lines, "body", geometry, indent=indent, space_before=body_gap, keep_with_next=node.keep_with_next
            )
            return [block] if keep_whole else self._split_lines(block)

        if node.kind == NodeKind.KEY_VALUE:
            text = f"{node.label}: {node.text}" if node.label else node.text
            lines = wrap_text(text, fonts["body"], width)
            block = self._text_block(lines, "body", geometry, keep_with_next=node.keep_with_next)
            return [block] if keep_whole else self._split_lines(block)

        # Paragraph
        lines = wrap_text(node.text, fonts["body"], width)
        block = self._text_block(lines, "body", geometry, space_before=body_gap, keep_with_next=node.keep_with_next)
        return [block] if keep_whole else self._split_lines(block)

    @staticmethod
    def _split_lines(block: LayoutBlock) -> List[LayoutBlock]:
        """Break a block into one block per line so it may span pages."""
        if len(block.lines) <= 1:
            return [block]
        line_height = block.height / len(block.lines)
        pieces = []
        for index, line in enumerate(block.lines):
            pieces.append(
                LayoutBlock(
                    height=line_height,
                    space_before=block.space_before if index == 0 else 0.0,
                    lines=[TextLine(line.text, line.font_key, line.x, 0.0)],
                    excerpt=line.text[:80],
                )
            )
        pieces[-1].keep_with_next = block.keep_with_next
        return pieces

    # Drawing

    def _draw_page(
        self,
        blocks: Sequence[LayoutBlock],
        geometry: PageGeometry,
        fonts: Dict[str, ImageFont.ImageFont],
    ) -> Image.Image:
        surface = Image.new("RGB", geometry.size, "white")
        draw = ImageDraw.Draw(surface)
        left, top, _, _ = self.content_box(geometry)

        y = top
        for index, block in enumerate(blocks):
            if index:
                y += block.space_before
            for line in block.lines:
                color = TEXT_COLOR if line.font_key == "body" else HEADING_COLOR
                draw.text((left + line.x, y + line.y), line.text, font=fonts[line.font_key], fill=color)
            y += block.height

        return surface

    def rasterize(
        self, tree: ContentTree, geometry: PageGeometry, options: RasterizeOptions
    ) -> List[Image.Image]:
        """
        Render the tree onto as many pages as it needs.

        Raises:
            UnsupportedContentError: If an atomic unit is taller than the content area
        """
        blocks = self.layout_blocks(tree, geometry, options)
        _, _, _, capacity = self.content_box(geometry)
        pages = paginate(blocks, capacity)
        fonts = self._load_fonts(geometry)
        return [self._draw_page(page_blocks, geometry, fonts) for page_blocks in pages]
