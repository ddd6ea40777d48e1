"""
Render configuration.

A RenderConfig is built explicitly and passed into the generation pipeline at
call time; nothing here is a process-wide singleton.

Resolution order (later wins):
    1. Structured defaults below
    2. YAML file (e.g., config/render.yaml)
    3. Environment variables (RESUMARK_*), loaded from .env via python-dotenv
    4. Explicit overrides passed to load_render_config()

Examples:
    >>> config = load_render_config(Path("config/render.yaml"))
    >>> config = load_render_config(overrides={"dpi": 200, "save_locally": False})
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

from resumark.contexts.rendering.geometry import PageGeometry

# Seconds before an overlay fetch or a remote store request gives up
DEFAULT_HTTP_TIMEOUT_S = 30.0

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "RESUMARK_OUTPUT_DIR": "output_dir",
    "RESUMARK_HEADER_ASSET": "overlays.header",
    "RESUMARK_WATERMARK_ASSET": "overlays.watermark",
    "RESUMARK_EVENTS_FILE": "events_file",
    "RESUMARK_FONT_PATH": "typography.font_path",
}


@dataclass
class MarginsConfig:
    """Page margins in millimetres. The top margin clears the header band."""

    top: float = 45.0
    right: float = 10.0
    bottom: float = 10.0
    left: float = 10.0


@dataclass
class TypographyConfig:
    """
    Font settings for the reference rasterizer.

    Sizes are in points and scaled to pixels by the configured DPI.
    font_path=None uses Pillow's bundled default font.
    """

    font_path: Optional[str] = None
    base_font_size: float = 10.0
    heading_font_size: float = 13.0
    title_font_size: float = 20.0
    line_spacing: float = 1.3


@dataclass
class OverlayConfig:
    """
    Overlay asset references and opacities.

    References may be file paths, http(s) URLs or base64 data URLs.
    None means the overlay is not used.
    """

    header: Optional[str] = None
    watermark: Optional[str] = None
    header_opacity: float = 1.0
    watermark_opacity: float = 0.05


@dataclass
class RenderConfig:
    """
    Complete configuration for one or more generate() calls.

    Attributes:
        dpi: Output resolution; pages are A4 at this resolution
        margins_mm: Content area margins
        typography: Fonts used by the reference rasterizer
        overlays: Header and watermark assets
        default_filename: Filename used when no subject name is given
        output_dir: Directory for the local save
        save_locally: Write the PDF to output_dir after generation
        asset_timeout_s: HTTP timeout for fetching overlay assets
        events_file: JSON Lines pipeline event log (None disables it)
    """

    dpi: int = 150
    margins_mm: MarginsConfig = field(default_factory=MarginsConfig)
    typography: TypographyConfig = field(default_factory=TypographyConfig)
    overlays: OverlayConfig = field(default_factory=OverlayConfig)
    default_filename: str = "Resume.pdf"
    output_dir: str = "outs/results"
    save_locally: bool = True
    asset_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    events_file: Optional[str] = None

    @property
    def geometry(self) -> PageGeometry:
        """A4 page geometry at the configured DPI."""
        return PageGeometry.a4(self.dpi)

    @property
    def events_path(self) -> Optional[Path]:
        return Path(self.events_file) if self.events_file else None


def _env_overrides() -> Dict[str, Any]:
    """Collect RESUMARK_* environment variables as dotted-key overrides."""
    load_dotenv()
    return {key: os.environ[env] for env, key in ENV_OVERRIDES.items() if os.environ.get(env)}


def load_render_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    use_env: bool = True,
) -> RenderConfig:
    """
    Build a RenderConfig from defaults, an optional YAML file, env and overrides.

    Args:
        config_path: YAML file with any subset of RenderConfig fields
        overrides: Dotted-key overrides (e.g., {"overlays.header": "logo.png"})
        use_env: Apply RESUMARK_* environment variables

    Returns:
        Validated RenderConfig instance

    Raises:
        FileNotFoundError: If config_path does not exist
        omegaconf.errors.ValidationError: If a value has the wrong type
    """
    config = OmegaConf.structured(RenderConfig)

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Render config not found: {config_path}")
        config = OmegaConf.merge(config, OmegaConf.load(config_path))

    dotted = {}
    if use_env:
        dotted.update(_env_overrides())
    dotted.update(overrides or {})
    for key, value in dotted.items():
        OmegaConf.update(config, key, value, merge=True)

    return OmegaConf.to_object(config)
