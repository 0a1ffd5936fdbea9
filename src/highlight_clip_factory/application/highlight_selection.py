from __future__ import annotations

from highlight_clip_factory.application.retry_policy import retry
from highlight_clip_factory.domain.clip_rules import HighlightRuleEngine
from highlight_clip_factory.domain.models import Highlight, Transcript
from highlight_clip_factory.domain.protocols import HighlightSelector


class ResilientHighlightSelector:
    """Primary engine with rule normalization; falls back to the heuristic on any failure.

    `select_highlights` never raises: highlight detection must not abort a run.
    """

    def __init__(
        self,
        primary: HighlightSelector | None,
        fallback: HighlightSelector,
        rule_engine: HighlightRuleEngine,
        logger,
        max_retries: int = 0,
        retry_delay_sec: float = 1.5,
        retry_on: tuple[type[Exception], ...] = (Exception,),
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.rule_engine = rule_engine
        self.logger = logger
        self.max_retries = max_retries
        self.retry_delay_sec = retry_delay_sec
        self.retry_on = retry_on

    def select_highlights(self, transcript: Transcript, count: int) -> list[Highlight]:
        if not transcript.segments:
            return []

        if self.primary is None:
            self.logger.info("selector.fallback_mode", reason="no highlight engine configured")
            return self._fallback(transcript, count)

        primary = self.primary
        try:
            raw = retry(
                lambda: primary.select_highlights(transcript, count),
                retries=self.max_retries,
                delay_sec=self.retry_delay_sec,
                retry_on=self.retry_on,
            )
            highlights = self.rule_engine.finalize(raw, count)
        except Exception as exc:
            self.logger.warning("selector.primary_failed", error=str(exc))
            return self._fallback(transcript, count)

        if not highlights:
            self.logger.warning("selector.primary_empty", proposed=len(raw))
            return self._fallback(transcript, count)

        self.logger.info("selector.done", source="primary", count=len(highlights))
        return highlights

    def _fallback(self, transcript: Transcript, count: int) -> list[Highlight]:
        highlights = self.fallback.select_highlights(transcript, count)
        ordered = sorted(highlights, key=lambda h: h.score, reverse=True)[:count]
        self.logger.info("selector.done", source="fallback", count=len(ordered))
        return ordered
