from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from uuid import uuid4

from highlight_clip_factory.domain.errors import AlreadyProcessed, NotFound, StorageError, TranscriptionServiceError
from highlight_clip_factory.domain.models import (
    ClipRecord,
    ClipWindow,
    FrameGeometry,
    Highlight,
    ProcessOptions,
    RenderEvent,
    Transcript,
    VideoRecord,
    VideoStatus,
)
from highlight_clip_factory.domain.protocols import (
    ClipRenderer,
    HighlightSelector,
    TranscriptProvider,
    VideoRepository,
)
from highlight_clip_factory.infrastructure.render.subtitle_generator import SubtitleGenerator
from highlight_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from highlight_clip_factory.utils.locks import KeyedLock

ClipEventCallback = Callable[[int, RenderEvent], None]


class PipelineExecutor:
    """Drives one video through transcription, highlight selection and clip rendering.

    `run` owns the uploaded -> processing -> completed/failed transitions. Step
    failures never escape it: they become a failed record with a reason, and
    any file written during the run is deleted (all-or-nothing).
    """

    def __init__(
        self,
        repo: VideoRepository,
        locks: KeyedLock,
        store: ArtifactStore,
        transcriber: TranscriptProvider,
        selector: HighlightSelector,
        subtitle_generator: SubtitleGenerator,
        renderer: ClipRenderer,
        geometry: FrameGeometry,
        max_clip_sec: float,
        logger,
    ) -> None:
        self.repo = repo
        self.locks = locks
        self.store = store
        self.transcriber = transcriber
        self.selector = selector
        self.subtitle_generator = subtitle_generator
        self.renderer = renderer
        self.geometry = geometry
        self.max_clip_sec = max_clip_sec
        self.logger = logger

    def run(
        self,
        video_id: str,
        options: ProcessOptions,
        on_event: ClipEventCallback | None = None,
    ) -> VideoRecord | None:
        record = self._begin(video_id)
        written: list[Path] = []
        try:
            clips = self._produce_clips(record, options, written, on_event)
        except Exception as exc:
            self.logger.exception("video.failed", video_id=video_id, error=str(exc))
            self._discard(video_id, written)
            return self.fail(video_id, exc)
        return self._complete(video_id, clips, written)

    def fail(self, video_id: str, exc: BaseException) -> VideoRecord | None:
        reason = str(exc).strip() or exc.__class__.__name__
        with self.locks.hold(video_id):
            record = self.repo.get(video_id)
            if record is None:
                self.logger.warning("video.deleted_during_processing", video_id=video_id)
                return None
            record.mark_failed(reason)
            self.repo.put(record)
        self.logger.info("video.status", video_id=video_id, status=record.status.value, reason=reason)
        return record

    def _begin(self, video_id: str) -> VideoRecord:
        with self.locks.hold(video_id):
            record = self.repo.get(video_id)
            if record is None:
                raise NotFound(f"Video not found: {video_id}")
            if record.status is VideoStatus.UPLOADED:
                record.mark_processing()
                self.repo.put(record)
                self.logger.info("video.status", video_id=video_id, status=record.status.value)
            elif record.status is not VideoStatus.PROCESSING:
                raise AlreadyProcessed(f"Video {video_id} is already {record.status.value}")
        return record

    def _produce_clips(
        self,
        record: VideoRecord,
        options: ProcessOptions,
        written: list[Path],
        on_event: ClipEventCallback | None,
    ) -> list[ClipRecord]:
        source = record.source_path
        if not source.is_file():
            raise StorageError(f"Source video not found: {source}")

        self.logger.info("transcribe.started", video_id=record.video_id)
        transcript = self.transcriber.transcribe(source)
        self._check_transcript(transcript)
        self.logger.info("transcribe.done", video_id=record.video_id, segments=len(transcript.segments))

        highlights = self.selector.select_highlights(transcript, options.clip_count)
        self.logger.info("highlights.selected", video_id=record.video_id, count=len(highlights))

        clips: list[ClipRecord] = []
        for index, highlight in enumerate(highlights, start=1):
            clips.append(self._render_clip(record, index, highlight, transcript, options, written, on_event))
        return clips

    def _render_clip(
        self,
        record: VideoRecord,
        index: int,
        highlight: Highlight,
        transcript: Transcript,
        options: ProcessOptions,
        written: list[Path],
        on_event: ClipEventCallback | None,
    ) -> ClipRecord:
        clip_id = uuid4().hex[:12]
        window = ClipWindow(
            start_sec=highlight.start_sec,
            end_sec=min(highlight.end_sec, highlight.start_sec + self.max_clip_sec),
        )
        output_path = self.store.clip_path(record.video_id, index, clip_id)

        subtitle_path: Path | None = None
        if options.with_subtitles:
            document = self.subtitle_generator.render(transcript.segments, window.start_sec, window.end_sec)
            if document is not None:
                subtitle_path = self.store.subtitle_path(output_path)
                written.append(subtitle_path)
                self.subtitle_generator.write(subtitle_path, document)

        def forward(event: RenderEvent) -> None:
            if event.kind == "progress":
                self.logger.debug("render.progress", video_id=record.video_id, clip=index, percent=round(event.percent, 1))
            if on_event:
                on_event(index, event)

        written.append(output_path)
        self.logger.info("render.started", video_id=record.video_id, clip=index, start=window.start_sec, end=window.end_sec)
        self.renderer.render(
            source_path=record.source_path,
            output_path=output_path,
            window=window,
            geometry=self.geometry,
            subtitle_path=subtitle_path,
            on_event=forward,
        )
        self.logger.info("clip.rendered", video_id=record.video_id, clip=index, path=str(output_path))

        return ClipRecord(
            clip_id=clip_id,
            start_sec=window.start_sec,
            end_sec=window.end_sec,
            title=highlight.title,
            description=highlight.description,
            output_path=output_path,
            has_subtitles=subtitle_path is not None,
            subtitle_path=subtitle_path,
        )

    def _check_transcript(self, transcript: Transcript) -> None:
        if transcript.full_text.strip() and not transcript.segments:
            raise TranscriptionServiceError("Transcript has text but no time-stamped segments")
        previous = float("-inf")
        for segment in transcript.segments:
            if segment.end_sec <= segment.start_sec:
                raise TranscriptionServiceError(
                    f"Transcript segment {segment.index} has an empty or inverted time range: "
                    f"{segment.start_sec:g}s-{segment.end_sec:g}s"
                )
            if segment.start_sec < previous:
                raise TranscriptionServiceError("Transcript segments are not ordered by start time")
            previous = segment.start_sec

    def _complete(self, video_id: str, clips: list[ClipRecord], written: list[Path]) -> VideoRecord | None:
        with self.locks.hold(video_id):
            record = self.repo.get(video_id)
            if record is not None:
                record.mark_completed(clips)
                self.repo.put(record)
        if record is None:
            self.logger.warning("video.deleted_during_processing", video_id=video_id)
            self._discard(video_id, written)
            return None
        self.logger.info("video.status", video_id=video_id, status=record.status.value, clips=len(clips))
        return record

    def _discard(self, video_id: str, written: list[Path]) -> None:
        try:
            self.store.remove_all(written)
        except StorageError as exc:
            self.logger.warning("video.cleanup_failed", video_id=video_id, error=str(exc))
