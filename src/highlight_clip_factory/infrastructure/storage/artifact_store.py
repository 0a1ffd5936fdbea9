from __future__ import annotations

import shutil
from pathlib import Path
from typing import BinaryIO

from highlight_clip_factory.domain.errors import NotFound, StorageError, UploadRejected
from highlight_clip_factory.utils.paths import ensure_dir, safe_extension

_COPY_CHUNK_BYTES = 1024 * 1024


class ArtifactStore:
    def __init__(self, upload_dir: Path, clips_dir: Path, max_upload_bytes: int | None = None) -> None:
        self.upload_dir = ensure_dir(upload_dir)
        self.clips_dir = ensure_dir(clips_dir)
        self.max_upload_bytes = max_upload_bytes

    def save_upload(self, video_id: str, original_filename: str, stream: BinaryIO) -> Path:
        path = self.upload_dir / f"{video_id}{safe_extension(original_filename)}"
        written = 0
        try:
            with path.open("wb") as fh:
                while chunk := stream.read(_COPY_CHUNK_BYTES):
                    written += len(chunk)
                    if self.max_upload_bytes is not None and written > self.max_upload_bytes:
                        raise UploadRejected(
                            f"Upload exceeds the {self.max_upload_bytes} byte limit: {original_filename}"
                        )
                    fh.write(chunk)
        except UploadRejected:
            self.remove(path)
            raise
        except OSError as exc:
            self.remove(path)
            raise StorageError(f"Failed to store upload {original_filename}: {exc}") from exc
        return path

    def clip_path(self, video_id: str, index: int, clip_id: str) -> Path:
        return self.clips_dir / f"{video_id}_clip_{index}_{clip_id}.mp4"

    def subtitle_path(self, clip_path: Path) -> Path:
        return clip_path.with_suffix(".srt")

    def resolve_clip(self, video_id: str, filename: str) -> Path:
        if Path(filename).name != filename or not filename.startswith(f"{video_id}_"):
            raise NotFound(f"Clip not found: {video_id}/{filename}")
        path = self.clips_dir / filename
        if not path.is_file():
            raise NotFound(f"Clip not found: {video_id}/{filename}")
        return path

    def remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except IsADirectoryError:
            shutil.rmtree(path, ignore_errors=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {path}: {exc}") from exc

    def remove_all(self, paths: list[Path]) -> None:
        for path in paths:
            self.remove(path)
