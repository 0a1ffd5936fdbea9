from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class ServerConfig:
    port: int = 3000


@dataclass(slots=True)
class OpenAIConfig:
    api_key: str = ""
    transcribe_model: str = "whisper-1"
    highlight_model: str = "gpt-4"
    max_retries: int = 0
    timeout_sec: float = 600.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key.strip())


@dataclass(slots=True)
class UploadConfig:
    upload_dir: Path
    clips_dir: Path
    max_file_size: int = 100 * 1024 * 1024


@dataclass(slots=True)
class VideoConfig:
    target_aspect_ratio: str = "9:16"
    target_width: int = 1080
    target_height: int = 1920
    clip_duration: int = 60
    video_codec: str = "libx264"
    preset: str = "fast"
    crf: int = 23
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    ffmpeg_bin: str = "ffmpeg"


@dataclass(slots=True)
class SubtitleConfig:
    font_size: int = 24
    alignment: int = 2
    margin_v: int = 50


@dataclass(slots=True)
class PipelineConfig:
    default_clip_count: int = 3
    worker_count: int = 2


@dataclass(slots=True)
class StorageConfig:
    backend: str = "memory"
    db_path: Path | None = None


@dataclass(slots=True)
class Settings:
    server: ServerConfig
    openai: OpenAIConfig
    upload: UploadConfig
    video: VideoConfig
    subtitle: SubtitleConfig
    pipeline: PipelineConfig
    storage: StorageConfig
    root_dir: Path


def load_settings(root_dir: Path) -> Settings:
    config_path = root_dir / "config" / "default.toml"
    raw: dict = {}
    if config_path.exists():
        with config_path.open("rb") as fh:
            raw = tomllib.load(fh)

    server = raw.get("server", {})
    openai = raw.get("openai", {})
    upload = raw.get("upload", {})
    video = raw.get("video", {})
    subtitle = raw.get("subtitle", {})
    pipeline = raw.get("pipeline", {})
    storage = raw.get("storage", {})
    backend = str(os.getenv("STORAGE_BACKEND", storage.get("backend", "memory"))).lower()
    if backend not in ("memory", "sqlite"):
        raise ValueError(f"Unknown storage backend: {backend}")

    return Settings(
        server=ServerConfig(port=int(os.getenv("PORT", server.get("port", 3000)))),
        openai=OpenAIConfig(
            api_key=os.getenv("OPENAI_API_KEY", str(openai.get("api_key", ""))),
            transcribe_model=str(openai.get("transcribe_model", "whisper-1")),
            highlight_model=str(openai.get("highlight_model", "gpt-4")),
            max_retries=max(0, int(openai.get("max_retries", 0))),
            timeout_sec=float(openai.get("timeout_sec", 600.0)),
        ),
        upload=UploadConfig(
            upload_dir=_resolve_path(root_dir, os.getenv("UPLOAD_DIR", upload.get("upload_dir", "./uploads"))),
            clips_dir=_resolve_path(root_dir, os.getenv("CLIPS_DIR", upload.get("clips_dir", "./clips"))),
            max_file_size=int(os.getenv("MAX_FILE_SIZE", upload.get("max_file_size", 104857600))),
        ),
        video=VideoConfig(
            target_aspect_ratio=str(video.get("target_aspect_ratio", "9:16")),
            target_width=int(video.get("target_width", 1080)),
            target_height=int(video.get("target_height", 1920)),
            clip_duration=max(1, int(os.getenv("CLIP_DURATION", video.get("clip_duration", 60)))),
            video_codec=str(video.get("video_codec", "libx264")),
            preset=str(video.get("preset", "fast")),
            crf=int(video.get("crf", 23)),
            audio_codec=str(video.get("audio_codec", "aac")),
            audio_bitrate=str(video.get("audio_bitrate", "128k")),
            ffmpeg_bin=os.getenv("FFMPEG_BIN", str(video.get("ffmpeg_bin", "ffmpeg"))),
        ),
        subtitle=SubtitleConfig(
            font_size=int(subtitle.get("font_size", 24)),
            alignment=int(subtitle.get("alignment", 2)),
            margin_v=int(subtitle.get("margin_v", 50)),
        ),
        pipeline=PipelineConfig(
            default_clip_count=max(1, int(pipeline.get("default_clip_count", 3))),
            worker_count=max(1, int(pipeline.get("worker_count", 2))),
        ),
        storage=StorageConfig(
            backend=backend,
            db_path=_resolve_path(root_dir, str(storage.get("db_path", "./runs/videos.db"))),
        ),
        root_dir=root_dir,
    )


def _resolve_path(root_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (root_dir / path).resolve()
