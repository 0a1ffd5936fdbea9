from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from highlight_clip_factory.domain.errors import AlreadyProcessed


class ProcessingWorker:
    """Runs pipelines in the background with at most one in-flight task per video id."""

    def __init__(self, max_workers: int, logger) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="clip-pipeline")
        self._inflight: dict[str, Future] = {}
        self._guard = threading.Lock()
        self.logger = logger

    def submit(self, video_id: str, operation: Callable[[], Any]) -> Future:
        with self._guard:
            current = self._inflight.get(video_id)
            if current is not None and not current.done():
                raise AlreadyProcessed(f"Video {video_id} is already being processed")
            future = self._pool.submit(operation)
            self._inflight[video_id] = future
        future.add_done_callback(lambda done: self._on_done(video_id, done))
        return future

    def is_running(self, video_id: str) -> bool:
        with self._guard:
            future = self._inflight.get(video_id)
        return future is not None and not future.done()

    def wait(self, video_id: str, timeout: float | None = None) -> None:
        with self._guard:
            future = self._inflight.get(video_id)
        if future is None:
            return
        future.exception(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def _on_done(self, video_id: str, future: Future) -> None:
        with self._guard:
            if self._inflight.get(video_id) is future:
                del self._inflight[video_id]
        if future.cancelled():
            self.logger.warning("worker.cancelled", video_id=video_id)
            return
        error = future.exception()
        if error is not None:
            self.logger.error("worker.task_crashed", video_id=video_id, error=str(error))
