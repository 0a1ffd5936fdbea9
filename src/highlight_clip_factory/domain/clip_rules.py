from __future__ import annotations

from dataclasses import dataclass

from .models import Highlight


@dataclass(slots=True)
class HighlightRuleConfig:
    max_sec: float = 60.0
    title_max_chars: int = 80
    overlap_tolerance_sec: float = 0.0


class HighlightRuleEngine:
    """Normalizes engine-proposed highlights into the ranked, bounded form the pipeline renders."""

    def __init__(self, config: HighlightRuleConfig) -> None:
        self.config = config

    def finalize(self, highlights: list[Highlight], count: int) -> list[Highlight]:
        valid = [h for h in highlights if h.start_sec >= 0 and h.end_sec > h.start_sec]
        clamped = [self._clamp_duration(h) for h in valid]
        deduped = self._remove_overlaps(clamped)
        capped = [self._cap_title(h) for h in deduped]

        capped.sort(key=lambda h: h.score, reverse=True)
        return capped[:count]

    def _clamp_duration(self, highlight: Highlight) -> Highlight:
        end = min(highlight.end_sec, highlight.start_sec + self.config.max_sec)
        return Highlight(
            start_sec=highlight.start_sec,
            end_sec=end,
            title=highlight.title,
            description=highlight.description,
            score=highlight.score,
        )

    def _cap_title(self, highlight: Highlight) -> Highlight:
        title = highlight.title.strip()
        if len(title) > self.config.title_max_chars:
            title = title[: self.config.title_max_chars].rstrip()
        return Highlight(
            start_sec=highlight.start_sec,
            end_sec=highlight.end_sec,
            title=title,
            description=highlight.description,
            score=highlight.score,
        )

    def _remove_overlaps(self, highlights: list[Highlight]) -> list[Highlight]:
        # Higher-scored windows win when two proposals cover the same stretch.
        ordered = sorted(highlights, key=lambda h: (-h.score, h.start_sec))
        result: list[Highlight] = []
        for highlight in ordered:
            if not any(self._overlap(existing, highlight) for existing in result):
                result.append(highlight)
        return result

    def _overlap(self, left: Highlight, right: Highlight) -> bool:
        overlap = min(left.end_sec, right.end_sec) - max(left.start_sec, right.start_sec)
        return overlap > self.config.overlap_tolerance_sec
