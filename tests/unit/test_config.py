"""Unit tests for render configuration loading."""

from pathlib import Path

import pytest
from omegaconf.errors import ValidationError

from resumark.contexts.rendering.config import ENV_OVERRIDES, RenderConfig, load_render_config

REPO_CONFIG = Path(__file__).resolve().parents[2] / "config" / "render.yaml"


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
def test_defaults(clean_env):
    config = load_render_config(use_env=False)

    assert isinstance(config, RenderConfig)
    assert config.dpi == 150
    assert config.geometry.size == (1240, 1754)
    assert config.margins_mm.top == 45.0
    assert config.overlays.header is None
    assert config.overlays.watermark_opacity == 0.05
    assert config.default_filename == "Resume.pdf"
    assert config.events_path is None


@pytest.mark.unit
def test_yaml_file_merged_over_defaults(tmp_path, clean_env):
    path = tmp_path / "render.yaml"
    path.write_text("dpi: 200\nmargins_mm:\n  left: 20\noverlays:\n  watermark: wm.png\n")

    config = load_render_config(path, use_env=False)

    assert config.dpi == 200
    assert config.margins_mm.left == 20.0
    assert config.margins_mm.right == 10.0
    assert config.overlays.watermark == "wm.png"


@pytest.mark.unit
def test_repository_config_loads(clean_env):
    config = load_render_config(REPO_CONFIG, use_env=False)

    assert config.overlays.header == "assets/header.svg"
    assert config.events_path == Path("outs/logs/pipeline_events.log")


@pytest.mark.unit
def test_repository_config_overlays_are_shipped(clean_env):
    config = load_render_config(REPO_CONFIG, use_env=False)
    repo_root = REPO_CONFIG.parents[1]

    for reference in (config.overlays.header, config.overlays.watermark):
        assert (repo_root / reference).is_file()


@pytest.mark.unit
def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_render_config(tmp_path / "nope.yaml")


@pytest.mark.unit
def test_dotted_overrides(clean_env):
    config = load_render_config(
        overrides={"dpi": 72, "overlays.header_opacity": 0.5, "save_locally": False}, use_env=False
    )

    assert config.dpi == 72
    assert config.overlays.header_opacity == 0.5
    assert config.save_locally is False


@pytest.mark.unit
def test_data_url_override_kept_intact(clean_env):
    """Base64 padding ('=') must survive the override path."""
    url = "data:image/png;base64,iVBORw0KGgo=="

    config = load_render_config(overrides={"overlays.header": url}, use_env=False)

    assert config.overlays.header == url


@pytest.mark.unit
def test_environment_overrides(clean_env, tmp_path):
    clean_env.setenv("RESUMARK_OUTPUT_DIR", str(tmp_path))
    clean_env.setenv("RESUMARK_WATERMARK_ASSET", "https://cdn.example.com/wm.png")

    config = load_render_config()

    assert config.output_dir == str(tmp_path)
    assert config.overlays.watermark == "https://cdn.example.com/wm.png"


@pytest.mark.unit
def test_explicit_overrides_beat_environment(clean_env):
    clean_env.setenv("RESUMARK_OUTPUT_DIR", "from-env")

    config = load_render_config(overrides={"output_dir": "from-call"})

    assert config.output_dir == "from-call"


@pytest.mark.unit
def test_wrong_type_rejected(clean_env):
    with pytest.raises(ValidationError):
        load_render_config(overrides={"dpi": "high"}, use_env=False)
