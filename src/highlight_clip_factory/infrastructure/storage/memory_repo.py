from __future__ import annotations

import threading

from highlight_clip_factory.domain.models import VideoRecord


class InMemoryVideoRepository:
    """Process-local registry. Records go in and come out as copies."""

    def __init__(self) -> None:
        self._records: dict[str, VideoRecord] = {}
        self._guard = threading.Lock()

    def get(self, video_id: str) -> VideoRecord | None:
        with self._guard:
            record = self._records.get(video_id)
            return record.copy() if record is not None else None

    def put(self, record: VideoRecord) -> None:
        with self._guard:
            self._records[record.video_id] = record.copy()

    def delete(self, video_id: str) -> bool:
        with self._guard:
            return self._records.pop(video_id, None) is not None

    def list_all(self) -> list[VideoRecord]:
        with self._guard:
            records = [record.copy() for record in self._records.values()]
        return sorted(records, key=lambda r: r.created_at)
