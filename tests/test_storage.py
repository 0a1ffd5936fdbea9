import io
from pathlib import Path

import pytest

from highlight_clip_factory.domain.errors import NotFound, UploadRejected
from highlight_clip_factory.domain.models import ClipRecord, VideoRecord, VideoStatus
from highlight_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from highlight_clip_factory.infrastructure.storage.memory_repo import InMemoryVideoRepository
from highlight_clip_factory.infrastructure.storage.sqlite_repo import SQLiteVideoRepository


def _completed_record() -> VideoRecord:
    record = VideoRecord(video_id="v1", source_path=Path("/data/v1.mp4"), original_filename="ショート.mp4")
    record.mark_processing()
    record.mark_completed(
        [
            ClipRecord(
                clip_id="c1",
                start_sec=1.5,
                end_sec=31.5,
                title="タイトル",
                description="d",
                output_path=Path("/clips/v1_clip_0_c1.mp4"),
                has_subtitles=True,
                subtitle_path=Path("/clips/v1_clip_0_c1.srt"),
            )
        ]
    )
    return record


def test_sqlite_repository_round_trip(tmp_path: Path):
    repo = SQLiteVideoRepository(tmp_path / "db" / "videos.db")
    record = _completed_record()

    repo.put(record)
    loaded = repo.get("v1")

    assert loaded == record
    assert loaded.status == VideoStatus.COMPLETED
    assert [r.video_id for r in repo.list_all()] == ["v1"]
    assert repo.delete("v1") is True
    assert repo.delete("v1") is False
    assert repo.get("v1") is None


def test_sqlite_repository_upsert_updates_status(tmp_path: Path):
    repo = SQLiteVideoRepository(tmp_path / "videos.db")
    record = VideoRecord(video_id="v2", source_path=Path("v2.mp4"), original_filename="a.mp4")
    repo.put(record)

    record.mark_processing()
    repo.put(record)

    assert repo.get("v2").status == VideoStatus.PROCESSING


def test_memory_repository_hands_out_copies():
    repo = InMemoryVideoRepository()
    record = VideoRecord(video_id="v1", source_path=Path("v1.mp4"), original_filename="a.mp4")
    repo.put(record)

    record.mark_processing()
    loaded = repo.get("v1")
    loaded.clips.append(None)

    assert loaded.status == VideoStatus.UPLOADED
    assert repo.get("v1").clips == []


def test_artifact_store_limits_upload_size(tmp_path: Path):
    store = ArtifactStore(tmp_path / "up", tmp_path / "clips", max_upload_bytes=4)

    with pytest.raises(UploadRejected):
        store.save_upload("v1", "big.mov", io.BytesIO(b"0123456789"))

    assert list((tmp_path / "up").iterdir()) == []


def test_artifact_store_keeps_extension_and_content(tmp_path: Path):
    store = ArtifactStore(tmp_path / "up", tmp_path / "clips")

    path = store.save_upload("v1", "talk.MOV", io.BytesIO(b"abc"))

    assert path.parent == tmp_path / "up"
    assert path.name.startswith("v1")
    assert path.read_bytes() == b"abc"


def test_resolve_clip_rejects_foreign_and_traversal_names(tmp_path: Path):
    store = ArtifactStore(tmp_path / "up", tmp_path / "clips")
    clip = store.clip_path("v1", 0, "abc")
    clip.write_bytes(b"x")

    assert store.resolve_clip("v1", clip.name) == clip
    with pytest.raises(NotFound):
        store.resolve_clip("v2", clip.name)
    with pytest.raises(NotFound):
        store.resolve_clip("v1", f"../clips/{clip.name}")
    with pytest.raises(NotFound):
        store.resolve_clip("v1", "v1_clip_9_missing.mp4")


def test_remove_tolerates_missing_files(tmp_path: Path):
    store = ArtifactStore(tmp_path / "up", tmp_path / "clips")
    present = tmp_path / "clips" / "a.mp4"
    present.write_bytes(b"x")

    store.remove_all([present, tmp_path / "clips" / "gone.mp4"])

    assert not present.exists()
