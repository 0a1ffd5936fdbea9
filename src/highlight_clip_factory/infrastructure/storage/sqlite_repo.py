from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from highlight_clip_factory.domain.models import ClipRecord, VideoRecord, VideoStatus


class SQLiteVideoRepository:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS videos (
                    video_id TEXT PRIMARY KEY,
                    source_path TEXT NOT NULL,
                    original_filename TEXT NOT NULL,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    completed_at TEXT,
                    failure_reason TEXT,
                    clips_json TEXT NOT NULL DEFAULT '[]'
                );
                """
            )

    def get(self, video_id: str) -> VideoRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT video_id, source_path, original_filename, status, created_at,
                       completed_at, failure_reason, clips_json
                FROM videos WHERE video_id = ?
                """,
                (video_id,),
            ).fetchone()
        return self._to_record(row) if row else None

    def put(self, record: VideoRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO videos (video_id, source_path, original_filename, status, created_at,
                                    completed_at, failure_reason, clips_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(video_id) DO UPDATE SET
                    status = excluded.status,
                    completed_at = excluded.completed_at,
                    failure_reason = excluded.failure_reason,
                    clips_json = excluded.clips_json
                """,
                (
                    record.video_id,
                    str(record.source_path),
                    record.original_filename,
                    record.status.value,
                    record.created_at.isoformat(),
                    record.completed_at.isoformat() if record.completed_at else None,
                    record.failure_reason,
                    json.dumps([self._clip_to_dict(c) for c in record.clips], ensure_ascii=False),
                ),
            )

    def delete(self, video_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM videos WHERE video_id = ?", (video_id,))
            return cursor.rowcount > 0

    def list_all(self) -> list[VideoRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT video_id, source_path, original_filename, status, created_at,
                       completed_at, failure_reason, clips_json
                FROM videos ORDER BY created_at
                """
            ).fetchall()
        return [self._to_record(row) for row in rows]

    def _to_record(self, row) -> VideoRecord:
        return VideoRecord(
            video_id=row[0],
            source_path=Path(row[1]),
            original_filename=row[2],
            status=VideoStatus(row[3]),
            created_at=datetime.fromisoformat(row[4]),
            completed_at=datetime.fromisoformat(row[5]) if row[5] else None,
            failure_reason=row[6],
            clips=[self._clip_from_dict(item) for item in json.loads(row[7] or "[]")],
        )

    def _clip_to_dict(self, clip: ClipRecord) -> dict:
        return {
            "clip_id": clip.clip_id,
            "start_sec": clip.start_sec,
            "end_sec": clip.end_sec,
            "title": clip.title,
            "description": clip.description,
            "output_path": str(clip.output_path),
            "has_subtitles": clip.has_subtitles,
            "subtitle_path": str(clip.subtitle_path) if clip.subtitle_path else None,
        }

    def _clip_from_dict(self, item: dict) -> ClipRecord:
        subtitle_path = item.get("subtitle_path")
        return ClipRecord(
            clip_id=str(item["clip_id"]),
            start_sec=float(item["start_sec"]),
            end_sec=float(item["end_sec"]),
            title=str(item["title"]),
            description=str(item.get("description") or ""),
            output_path=Path(item["output_path"]),
            has_subtitles=bool(item.get("has_subtitles")),
            subtitle_path=Path(subtitle_path) if subtitle_path else None,
        )
