from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path

from .errors import AlreadyProcessed


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VideoStatus(StrEnum):
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    VideoStatus.UPLOADED: frozenset({VideoStatus.PROCESSING}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.COMPLETED, VideoStatus.FAILED}),
    VideoStatus.COMPLETED: frozenset(),
    VideoStatus.FAILED: frozenset(),
}


@dataclass(slots=True)
class TranscriptSegment:
    index: int
    start_sec: float
    end_sec: float
    text: str


@dataclass(slots=True)
class Transcript:
    full_text: str
    segments: list[TranscriptSegment] = field(default_factory=list)

    @property
    def duration_sec(self) -> float:
        return self.segments[-1].end_sec if self.segments else 0.0


@dataclass(slots=True)
class Highlight:
    start_sec: float
    end_sec: float
    title: str
    description: str
    score: float

    @property
    def duration(self) -> float:
        return max(0.0, self.end_sec - self.start_sec)


@dataclass(slots=True, frozen=True)
class ClipRecord:
    clip_id: str
    start_sec: float
    end_sec: float
    title: str
    description: str
    output_path: Path
    has_subtitles: bool
    subtitle_path: Path | None = None

    @property
    def duration_sec(self) -> float:
        return self.end_sec - self.start_sec

    @property
    def filename(self) -> str:
        return self.output_path.name


@dataclass(slots=True)
class VideoRecord:
    video_id: str
    source_path: Path
    original_filename: str
    status: VideoStatus = VideoStatus.UPLOADED
    created_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    clips: list[ClipRecord] = field(default_factory=list)
    failure_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (VideoStatus.COMPLETED, VideoStatus.FAILED)

    def mark_processing(self) -> None:
        self._transition(VideoStatus.PROCESSING)

    def mark_completed(self, clips: list[ClipRecord]) -> None:
        self._transition(VideoStatus.COMPLETED)
        self.clips = list(clips)
        self.failure_reason = None
        self.completed_at = _utcnow()

    def mark_failed(self, reason: str) -> None:
        self._transition(VideoStatus.FAILED)
        self.clips = []
        self.failure_reason = reason
        self.completed_at = _utcnow()

    def copy(self) -> VideoRecord:
        return VideoRecord(
            video_id=self.video_id,
            source_path=self.source_path,
            original_filename=self.original_filename,
            status=self.status,
            created_at=self.created_at,
            completed_at=self.completed_at,
            clips=list(self.clips),
            failure_reason=self.failure_reason,
        )

    def _transition(self, target: VideoStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise AlreadyProcessed(
                f"Video {self.video_id} cannot move from {self.status.value} to {target.value}"
            )
        self.status = target


@dataclass(slots=True)
class ProcessOptions:
    with_subtitles: bool = False
    clip_count: int = 3

    def __post_init__(self) -> None:
        if self.clip_count < 1:
            raise ValueError(f"clip_count must be >= 1, got {self.clip_count}")


@dataclass(slots=True, frozen=True)
class FrameGeometry:
    width: int = 1080
    height: int = 1920


@dataclass(slots=True, frozen=True)
class ClipWindow:
    start_sec: float
    end_sec: float

    @property
    def duration(self) -> float:
        return self.end_sec - self.start_sec


@dataclass(slots=True, frozen=True)
class RenderEvent:
    kind: str
    percent: float = 0.0
    message: str = ""


@dataclass(slots=True)
class MediaInfo:
    duration_sec: float
    width: int
    height: int
    fps: float
