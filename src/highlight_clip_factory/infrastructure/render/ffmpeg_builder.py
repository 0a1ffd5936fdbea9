from __future__ import annotations

from pathlib import Path

from highlight_clip_factory.domain.models import ClipWindow, FrameGeometry
from highlight_clip_factory.infrastructure.render.portrait_layout import build_filtergraph
from highlight_clip_factory.utils.config import SubtitleConfig, VideoConfig


class FFmpegCommandBuilder:
    def __init__(self, config: VideoConfig, subtitle_config: SubtitleConfig) -> None:
        self.config = config
        self.subtitle_config = subtitle_config

    def build(
        self,
        input_video: Path,
        output_video: Path,
        window: ClipWindow,
        geometry: FrameGeometry,
        subtitle_path: Path | None = None,
    ) -> list[str]:
        filter_graph = build_filtergraph(
            subtitle_path=str(subtitle_path) if subtitle_path else None,
            video_width=geometry.width,
            video_height=geometry.height,
            font_size=self.subtitle_config.font_size,
            alignment=self.subtitle_config.alignment,
            margin_v=self.subtitle_config.margin_v,
        )

        return [
            self.config.ffmpeg_bin,
            "-y",
            "-ss",
            f"{window.start_sec:.3f}",
            "-i",
            str(input_video),
            "-t",
            f"{window.duration:.3f}",
            "-vf",
            filter_graph,
            "-c:v",
            self.config.video_codec,
            "-preset",
            self.config.preset,
            "-crf",
            str(self.config.crf),
            "-c:a",
            self.config.audio_codec,
            "-b:a",
            self.config.audio_bitrate,
            "-pix_fmt",
            "yuv420p",
            "-movflags",
            "+faststart",
            "-progress",
            "pipe:1",
            "-nostats",
            str(output_video),
        ]
