from __future__ import annotations

from pathlib import Path

from highlight_clip_factory.domain.errors import ClipRenderingFailed
from highlight_clip_factory.domain.models import ClipWindow, FrameGeometry, RenderEvent
from highlight_clip_factory.domain.protocols import RenderEventCallback
from highlight_clip_factory.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from highlight_clip_factory.utils.logger import get_logger
from highlight_clip_factory.utils.media import CommandError, run_ffmpeg_with_progress


class LocalFFmpegRenderer:
    def __init__(self, command_builder: FFmpegCommandBuilder, logger=None) -> None:
        self.command_builder = command_builder
        self.logger = logger or get_logger()

    def render(
        self,
        source_path: Path,
        output_path: Path,
        window: ClipWindow,
        geometry: FrameGeometry,
        subtitle_path: Path | None = None,
        on_event: RenderEventCallback | None = None,
    ) -> None:
        if window.duration <= 0:
            self._emit(on_event, RenderEvent("failed", message=f"empty clip window {window}"))
            raise ClipRenderingFailed(f"Clip window has no duration: {window.start_sec}-{window.end_sec}")

        cmd = self.command_builder.build(
            input_video=source_path,
            output_video=output_path,
            window=window,
            geometry=geometry,
            subtitle_path=subtitle_path,
        )
        last_percent = -1.0

        def on_progress(percent: float) -> None:
            nonlocal last_percent
            if percent <= last_percent:
                return
            last_percent = percent
            # Progress events are advisory.
            try:
                self._emit(on_event, RenderEvent("progress", percent=percent))
            except Exception as exc:
                self.logger.warning("render.progress_callback_failed", percent=percent, error=str(exc))

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            run_ffmpeg_with_progress(cmd, window.duration, on_progress=on_progress)
        except (CommandError, OSError) as exc:
            diagnostic = str(exc)
            self._emit(on_event, RenderEvent("failed", percent=max(0.0, last_percent), message=diagnostic))
            raise ClipRenderingFailed(diagnostic) from exc

        self._emit(on_event, RenderEvent("completed", percent=100.0, message=str(output_path)))

    def _emit(self, on_event: RenderEventCallback | None, event: RenderEvent) -> None:
        if on_event:
            on_event(event)
