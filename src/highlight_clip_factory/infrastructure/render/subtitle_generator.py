from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path

from highlight_clip_factory.domain.errors import StorageError
from highlight_clip_factory.domain.models import TranscriptSegment


class SubtitleGenerator:
    """Builds SRT documents for one clip window.

    Only segments fully inside the window are kept. A segment crossing either
    boundary is dropped rather than truncated. Times are rebased so the clip
    starts at 00:00:00,000.
    """

    def render(
        self,
        segments: Sequence[TranscriptSegment],
        window_start: float,
        window_end: float,
    ) -> str | None:
        lines = self._build_lines(segments, window_start, window_end)
        if not lines:
            return None
        return "\n\n".join(
            f"{number}\n{self._fmt_time(start)} --> {self._fmt_time(end)}\n{text}"
            for number, (start, end, text) in enumerate(lines, start=1)
        )

    def write(self, path: Path, document: str) -> Path:
        try:
            path.write_text(document, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to write subtitles {path}: {exc}") from exc
        return path

    def _build_lines(
        self,
        segments: Sequence[TranscriptSegment],
        window_start: float,
        window_end: float,
    ) -> list[tuple[float, float, str]]:
        return [
            (seg.start_sec - window_start, seg.end_sec - window_start, seg.text)
            for seg in segments
            if seg.start_sec >= window_start and seg.end_sec <= window_end
        ]

    def _fmt_time(self, sec: float) -> str:
        # Truncate to whole milliseconds; the epsilon absorbs float noise such as 2.9999999.
        total_ms = max(0, math.floor(sec * 1000 + 1e-6))
        hours, rem = divmod(total_ms, 3_600_000)
        mins, rem = divmod(rem, 60_000)
        secs, millis = divmod(rem, 1000)
        return f"{hours:02d}:{mins:02d}:{secs:02d},{millis:03d}"
