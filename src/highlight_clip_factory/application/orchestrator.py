from __future__ import annotations

from pathlib import Path
from typing import BinaryIO
from uuid import uuid4

from highlight_clip_factory.application.pipeline_executor import ClipEventCallback, PipelineExecutor
from highlight_clip_factory.application.worker import ProcessingWorker
from highlight_clip_factory.domain.errors import NotFound, StorageError
from highlight_clip_factory.domain.models import ProcessOptions, VideoRecord, VideoStatus
from highlight_clip_factory.domain.protocols import VideoRepository
from highlight_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from highlight_clip_factory.utils.locks import KeyedLock


class AppOrchestrator:
    def __init__(
        self,
        executor: PipelineExecutor,
        worker: ProcessingWorker,
        repo: VideoRepository,
        locks: KeyedLock,
        store: ArtifactStore,
        logger,
        default_clip_count: int = 3,
    ) -> None:
        self.executor = executor
        self.worker = worker
        self.repo = repo
        self.locks = locks
        self.store = store
        self.logger = logger
        self.default_clip_count = default_clip_count

    def default_options(self, with_subtitles: bool = False) -> ProcessOptions:
        return ProcessOptions(with_subtitles=with_subtitles, clip_count=self.default_clip_count)

    def upload_video(self, stream: BinaryIO, original_filename: str) -> VideoRecord:
        video_id = uuid4().hex
        source_path = self.store.save_upload(video_id, original_filename, stream)
        record = VideoRecord(video_id=video_id, source_path=source_path, original_filename=original_filename)
        with self.locks.hold(video_id):
            self.repo.put(record)
        self.logger.info("video.uploaded", video_id=video_id, filename=original_filename, path=str(source_path))
        return record.copy()

    def ingest_file(self, path: Path) -> VideoRecord:
        try:
            with path.open("rb") as stream:
                return self.upload_video(stream, path.name)
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc

    def start_processing(
        self,
        video_id: str,
        options: ProcessOptions | None = None,
        on_event: ClipEventCallback | None = None,
    ) -> VideoRecord:
        options = options or self.default_options()
        with self.locks.hold(video_id):
            record = self._require(video_id)
            record.mark_processing()
            self.repo.put(record)
        self.logger.info(
            "video.status",
            video_id=video_id,
            status=record.status.value,
            clip_count=options.clip_count,
            with_subtitles=options.with_subtitles,
        )

        try:
            self.worker.submit(video_id, lambda: self.executor.run(video_id, options, on_event=on_event))
        except RuntimeError as exc:
            self.executor.fail(video_id, exc)
            raise
        return record.copy()

    def process(
        self,
        video_id: str,
        options: ProcessOptions | None = None,
        on_event: ClipEventCallback | None = None,
    ) -> VideoRecord:
        self.start_processing(video_id, options, on_event=on_event)
        return self.wait(video_id)

    def wait(self, video_id: str, timeout: float | None = None) -> VideoRecord:
        self.worker.wait(video_id, timeout=timeout)
        return self.get_video(video_id)

    def get_video(self, video_id: str) -> VideoRecord:
        return self._require(video_id)

    def list_videos(self) -> list[VideoRecord]:
        return self.repo.list_all()

    def clip_file(self, video_id: str, filename: str) -> Path:
        self._require(video_id)
        return self.store.resolve_clip(video_id, filename)

    def delete_video(self, video_id: str) -> None:
        with self.locks.hold(video_id):
            record = self._require(video_id)
            paths = [record.source_path]
            for clip in record.clips:
                paths.append(clip.output_path)
                paths.append(clip.subtitle_path or self.store.subtitle_path(clip.output_path))
            self.store.remove_all(paths)
            self.repo.delete(video_id)
        self.logger.info("video.deleted", video_id=video_id, files=len(paths))

    def recover_interrupted(self) -> int:
        recovered = 0
        for record in self.repo.list_all():
            if record.status is not VideoStatus.PROCESSING or self.worker.is_running(record.video_id):
                continue
            self.executor.fail(record.video_id, RuntimeError("Processing was interrupted before completion"))
            recovered += 1
        if recovered:
            self.logger.warning("video.recovered_interrupted", count=recovered)
        return recovered

    def shutdown(self) -> None:
        self.worker.shutdown(wait=True)

    def _require(self, video_id: str) -> VideoRecord:
        record = self.repo.get(video_id)
        if record is None:
            raise NotFound(f"Video not found: {video_id}")
        return record
