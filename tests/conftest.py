"""Shared fixtures: generated overlay images, a fixed-capacity rasterizer, small-page configs."""

from io import BytesIO
from typing import List, Optional

import pytest
from PIL import Image

from resumark.contexts.authoring.content_tree import ContentTree
from resumark.contexts.rendering.config import load_render_config
from resumark.contexts.rendering.geometry import PageGeometry
from resumark.contexts.rendering.rasterizer import RasterizeOptions

# Small pages keep the tests fast: A4 at 40 dpi is 331x468px
TEST_DPI = 40

RED = (220, 20, 20, 255)
BLUE = (20, 20, 220, 255)


def png_bytes(size=(200, 50), color=RED) -> bytes:
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def write_png(tmp_path):
    """Factory writing a solid-colour PNG into tmp_path and returning its path."""

    def _write(name="overlay.png", size=(200, 50), color=RED):
        path = tmp_path / name
        path.write_bytes(png_bytes(size, color))
        return path

    return _write


@pytest.fixture
def overlay_files(write_png):
    """Header (4:1, red) and watermark (2:1, blue) assets on disk."""
    return {
        "header": write_png("header.png", size=(400, 100), color=RED),
        "watermark": write_png("watermark.png", size=(200, 100), color=BLUE),
    }


@pytest.fixture
def make_config(tmp_path, overlay_files):
    """Factory for a RenderConfig with both overlays at full opacity and no local save."""

    def _make(**overrides):
        values = {
            "dpi": TEST_DPI,
            "output_dir": str(tmp_path / "out"),
            "save_locally": False,
            "overlays.header": str(overlay_files["header"]),
            "overlays.watermark": str(overlay_files["watermark"]),
            "overlays.watermark_opacity": 1.0,
        }
        values.update(overrides)
        return load_render_config(overrides=values, use_env=False)

    return _make


class CapacityRasterizer:
    """
    Rasterizer that fits a fixed number of leaf nodes on each page.

    Pages are plain surfaces of the requested geometry; the tree it was given
    is kept for inspection.
    """

    def __init__(self, capacity: int = 25, fill="white", error: Optional[Exception] = None):
        self.capacity = capacity
        self.fill = fill
        self.error = error
        self.trees: List[ContentTree] = []

    def rasterize(self, tree: ContentTree, geometry: PageGeometry, options: RasterizeOptions):
        self.trees.append(tree)
        if self.error is not None:
            raise self.error
        units = sum(1 for node in tree.walk() if not node.is_container)
        page_total = max(1, -(-units // self.capacity))
        return [Image.new("RGB", geometry.size, self.fill) for _ in range(page_total)]


@pytest.fixture
def capacity_rasterizer():
    return CapacityRasterizer(capacity=25)


@pytest.fixture
def make_rasterizer():
    """The CapacityRasterizer class, for tests needing a non-default one."""
    return CapacityRasterizer


@pytest.fixture
def make_png_bytes():
    """Factory returning encoded PNG bytes of a solid-colour image."""
    return png_bytes
