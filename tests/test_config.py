from pathlib import Path

import pytest

from highlight_clip_factory.utils.config import load_settings

_ENV_KEYS = (
    "PORT",
    "OPENAI_API_KEY",
    "UPLOAD_DIR",
    "CLIPS_DIR",
    "MAX_FILE_SIZE",
    "CLIP_DURATION",
    "FFMPEG_BIN",
    "STORAGE_BACKEND",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_config_file(tmp_path: Path):
    settings = load_settings(tmp_path)

    assert settings.server.port == 3000
    assert settings.upload.max_file_size == 104857600
    assert settings.upload.upload_dir == (tmp_path / "uploads").resolve()
    assert settings.video.clip_duration == 60
    assert settings.video.target_aspect_ratio == "9:16"
    assert settings.pipeline.default_clip_count == 3
    assert settings.storage.backend == "memory"
    assert settings.openai.enabled is False


def test_toml_values_and_environment_overrides(tmp_path: Path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "default.toml").write_text(
        "[video]\nclip_duration = 45\ncrf = 20\n\n[upload]\nclips_dir = \"out/clips\"\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("CLIP_DURATION", "30")
    monkeypatch.setenv("STORAGE_BACKEND", "SQLite")

    settings = load_settings(tmp_path)

    assert settings.server.port == 8080
    assert settings.openai.enabled is True
    assert settings.video.clip_duration == 30
    assert settings.video.crf == 20
    assert settings.upload.clips_dir == (tmp_path / "out" / "clips").resolve()
    assert settings.storage.backend == "sqlite"


def test_unknown_storage_backend_is_rejected(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "redis")
    with pytest.raises(ValueError, match="redis"):
        load_settings(tmp_path)
