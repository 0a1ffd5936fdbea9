from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from .models import ClipWindow, FrameGeometry, Highlight, RenderEvent, Transcript, VideoRecord

RenderEventCallback = Callable[[RenderEvent], None]


class TranscriptProvider(Protocol):
    def transcribe(self, source_path: Path) -> Transcript:
        """Return the full text plus time-ordered segments."""


class HighlightSelector(Protocol):
    def select_highlights(self, transcript: Transcript, count: int) -> list[Highlight]:
        """Return at most `count` highlights ordered by descending score."""


class ClipRenderer(Protocol):
    def render(
        self,
        source_path: Path,
        output_path: Path,
        window: ClipWindow,
        geometry: FrameGeometry,
        subtitle_path: Path | None = None,
        on_event: RenderEventCallback | None = None,
    ) -> None:
        """Write one playable clip or raise ClipRenderingFailed."""


class VideoRepository(Protocol):
    def get(self, video_id: str) -> VideoRecord | None: ...

    def put(self, record: VideoRecord) -> None: ...

    def delete(self, video_id: str) -> bool: ...

    def list_all(self) -> list[VideoRecord]: ...
