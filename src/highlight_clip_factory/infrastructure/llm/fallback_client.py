from __future__ import annotations

from highlight_clip_factory.domain.models import Highlight, Transcript


class HeuristicHighlightSelector:
    """Deterministic fallback when the highlight engine is unavailable.

    Splits the segment list into `count` contiguous chunks and proposes one
    highlight per chunk, so the results cover distinct parts of the timeline.
    """

    def __init__(self, max_sec: float = 60.0, base_score: float = 85.0, score_step: float = 10.0) -> None:
        self.max_sec = max_sec
        self.base_score = base_score
        self.score_step = score_step

    def select_highlights(self, transcript: Transcript, count: int) -> list[Highlight]:
        segments = transcript.segments
        if not segments or count < 1:
            return []

        chunk_count = min(count, len(segments))
        chunk_size = max(1, len(segments) // count)
        highlights: list[Highlight] = []

        for idx in range(chunk_count):
            first = segments[idx * chunk_size]
            if idx == chunk_count - 1:
                last = segments[-1]
            else:
                last = segments[min((idx + 1) * chunk_size, len(segments)) - 1]

            start = first.start_sec
            end = min(last.end_sec, start + self.max_sec)
            highlights.append(
                Highlight(
                    start_sec=start,
                    end_sec=end,
                    title=f"Highlight {idx + 1}",
                    description=f"Engaging moment from {_fmt_sec(start)}s to {_fmt_sec(last.end_sec)}s",
                    score=self.base_score - idx * self.score_step,
                )
            )

        return highlights


def _fmt_sec(value: float) -> str:
    return f"{value:g}"
