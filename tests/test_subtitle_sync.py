from pathlib import Path

import pytest

from highlight_clip_factory.domain.errors import StorageError
from highlight_clip_factory.domain.models import TranscriptSegment
from highlight_clip_factory.infrastructure.render.subtitle_generator import SubtitleGenerator


def _segments() -> list[TranscriptSegment]:
    return [
        TranscriptSegment(index=0, start_sec=5.0, end_sec=15.0, text="crosses the start"),
        TranscriptSegment(index=1, start_sec=12.0, end_sec=18.0, text="first line"),
        TranscriptSegment(index=2, start_sec=20.5, end_sec=24.25, text="second line"),
        TranscriptSegment(index=3, start_sec=65.0, end_sec=75.0, text="crosses the end"),
    ]


def test_segment_times_are_rebased_to_clip_start():
    doc = SubtitleGenerator().render(_segments(), 10.0, 70.0)

    assert doc == (
        "1\n00:00:02,000 --> 00:00:08,000\nfirst line"
        "\n\n"
        "2\n00:00:10,500 --> 00:00:14,250\nsecond line"
    )


def test_partially_overlapping_segments_are_dropped_not_truncated():
    doc = SubtitleGenerator().render(_segments(), 10.0, 70.0)

    assert "crosses the start" not in doc
    assert "crosses the end" not in doc
    assert "00:00:00,000" not in doc


def test_segment_touching_both_bounds_is_kept():
    segments = [TranscriptSegment(index=0, start_sec=10.0, end_sec=70.0, text="whole window")]

    doc = SubtitleGenerator().render(segments, 10.0, 70.0)

    assert doc == "1\n00:00:00,000 --> 00:01:00,000\nwhole window"


def test_render_returns_none_when_no_segment_fits():
    assert SubtitleGenerator().render(_segments(), 30.0, 40.0) is None
    assert SubtitleGenerator().render([], 0.0, 60.0) is None


def test_render_is_idempotent():
    gen = SubtitleGenerator()
    assert gen.render(_segments(), 10.0, 70.0) == gen.render(_segments(), 10.0, 70.0)


def test_milliseconds_are_truncated_and_hours_are_padded():
    gen = SubtitleGenerator()

    assert gen._fmt_time(1.9999) == "00:00:01,999"
    assert gen._fmt_time(0.3) == "00:00:00,300"
    assert gen._fmt_time(3725.0456) == "01:02:05,045"


def test_write_persists_document(tmp_path: Path):
    path = SubtitleGenerator().write(tmp_path / "clip.srt", "1\n00:00:00,000 --> 00:00:01,000\nhi")
    assert path.read_text(encoding="utf-8").startswith("1\n")


def test_write_wraps_os_errors(tmp_path: Path):
    with pytest.raises(StorageError):
        SubtitleGenerator().write(tmp_path / "missing" / "clip.srt", "x")
