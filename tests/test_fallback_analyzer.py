from highlight_clip_factory.domain.models import Transcript, TranscriptSegment
from highlight_clip_factory.infrastructure.llm.fallback_client import HeuristicHighlightSelector


def _transcript(count: int, seg_len: float = 10.0) -> Transcript:
    segments = [
        TranscriptSegment(index=i, start_sec=i * seg_len, end_sec=(i + 1) * seg_len, text=f"segment {i}")
        for i in range(count)
    ]
    return Transcript(full_text=" ".join(s.text for s in segments), segments=segments)


def test_fallback_splits_segments_into_contiguous_chunks():
    clips = HeuristicHighlightSelector().select_highlights(_transcript(6), count=2)

    assert [(c.start_sec, c.end_sec) for c in clips] == [(0.0, 30.0), (30.0, 60.0)]
    assert [c.title for c in clips] == ["Highlight 1", "Highlight 2"]
    assert [c.score for c in clips] == [85.0, 75.0]


def test_last_chunk_absorbs_remainder():
    clips = HeuristicHighlightSelector().select_highlights(_transcript(7, seg_len=5.0), count=3)

    assert [(c.start_sec, c.end_sec) for c in clips] == [(0.0, 10.0), (10.0, 20.0), (20.0, 35.0)]


def test_fallback_bounds_hold_for_many_counts():
    transcript = _transcript(25, seg_len=9.0)
    for count in range(1, 30):
        clips = HeuristicHighlightSelector().select_highlights(transcript, count)
        assert 0 < len(clips) <= count
        assert all(c.end_sec - c.start_sec <= 60 for c in clips)
        assert all(c.end_sec > c.start_sec for c in clips)
        scores = [c.score for c in clips]
        assert scores == sorted(scores, reverse=True)


def test_fallback_clamps_to_max_duration_from_chunk_start():
    clips = HeuristicHighlightSelector(max_sec=60).select_highlights(_transcript(12, seg_len=10.0), count=1)

    assert len(clips) == 1
    assert (clips[0].start_sec, clips[0].end_sec) == (0.0, 60.0)
    assert "120s" in clips[0].description


def test_more_clips_than_segments_yields_one_per_segment():
    clips = HeuristicHighlightSelector().select_highlights(_transcript(2), count=5)
    assert [(c.start_sec, c.end_sec) for c in clips] == [(0.0, 10.0), (10.0, 20.0)]


def test_score_may_go_negative_for_large_counts():
    clips = HeuristicHighlightSelector().select_highlights(_transcript(12), count=12)
    assert clips[-1].score == 85.0 - 110.0


def test_empty_segments_return_empty_list():
    assert HeuristicHighlightSelector().select_highlights(Transcript(full_text="", segments=[]), count=3) == []
