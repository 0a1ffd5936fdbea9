from highlight_clip_factory.application.highlight_selection import ResilientHighlightSelector
from highlight_clip_factory.domain.clip_rules import HighlightRuleConfig, HighlightRuleEngine
from highlight_clip_factory.domain.models import Highlight, Transcript, TranscriptSegment
from highlight_clip_factory.infrastructure.llm.fallback_client import HeuristicHighlightSelector


class FailingSelector:
    def __init__(self):
        self.calls = 0

    def select_highlights(self, transcript, count):
        self.calls += 1
        raise RuntimeError("boom")


class WorkingSelector:
    def __init__(self, highlights):
        self.highlights = highlights

    def select_highlights(self, transcript, count):
        return list(self.highlights)


class DummyLogger:
    def __init__(self):
        self.events = []

    def info(self, event, **kwargs):
        self.events.append(event)

    def warning(self, event, **kwargs):
        self.events.append(event)


def _transcript() -> Transcript:
    segments = [
        TranscriptSegment(index=i, start_sec=i * 10.0, end_sec=(i + 1) * 10.0, text=f"s{i}") for i in range(6)
    ]
    return Transcript(full_text="s0 s1 s2 s3 s4 s5", segments=segments)


def _selector(primary, logger, max_retries=0) -> ResilientHighlightSelector:
    return ResilientHighlightSelector(
        primary=primary,
        fallback=HeuristicHighlightSelector(),
        rule_engine=HighlightRuleEngine(HighlightRuleConfig(max_sec=60)),
        logger=logger,
        max_retries=max_retries,
        retry_delay_sec=0.0,
    )


def test_select_highlights_falls_back_when_primary_fails():
    logger = DummyLogger()
    primary = FailingSelector()

    selected = _selector(primary, logger, max_retries=2).select_highlights(_transcript(), 2)

    assert primary.calls == 3
    assert [h.title for h in selected] == ["Highlight 1", "Highlight 2"]
    assert "selector.primary_failed" in logger.events


def test_select_highlights_uses_normalized_primary_output():
    primary = WorkingSelector(
        [
            Highlight(start_sec=0, end_sec=20, title="calm", description="", score=40),
            Highlight(start_sec=30, end_sec=200, title="peak", description="", score=95),
        ]
    )

    selected = _selector(primary, DummyLogger()).select_highlights(_transcript(), 3)

    assert [h.title for h in selected] == ["peak", "calm"]
    assert selected[0].end_sec == 90


def test_select_highlights_falls_back_when_primary_returns_nothing_usable():
    primary = WorkingSelector([Highlight(start_sec=10, end_sec=5, title="bad", description="", score=99)])

    selected = _selector(primary, DummyLogger()).select_highlights(_transcript(), 1)

    assert [h.title for h in selected] == ["Highlight 1"]


def test_select_highlights_without_primary_uses_heuristic():
    selected = _selector(None, DummyLogger()).select_highlights(_transcript(), 3)
    assert len(selected) == 3


def test_select_highlights_with_empty_transcript_returns_empty():
    primary = FailingSelector()

    selected = _selector(primary, DummyLogger()).select_highlights(Transcript(full_text="", segments=[]), 3)

    assert selected == []
    assert primary.calls == 0


class FlakySelector:
    def __init__(self, highlights, failures, error_type):
        self.highlights = highlights
        self.failures = failures
        self.error_type = error_type
        self.calls = 0

    def select_highlights(self, transcript, count):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_type("temporary outage")
        return list(self.highlights)


def _selector_retrying_on(primary, retry_on) -> ResilientHighlightSelector:
    return ResilientHighlightSelector(
        primary=primary,
        fallback=HeuristicHighlightSelector(),
        rule_engine=HighlightRuleEngine(HighlightRuleConfig(max_sec=60)),
        logger=DummyLogger(),
        max_retries=2,
        retry_delay_sec=0.0,
        retry_on=retry_on,
    )


def test_transient_primary_errors_are_retried():
    primary = FlakySelector(
        [Highlight(start_sec=0, end_sec=20, title="peak", description="", score=90)],
        failures=2,
        error_type=ConnectionError,
    )

    selected = _selector_retrying_on(primary, (ConnectionError,)).select_highlights(_transcript(), 1)

    assert primary.calls == 3
    assert [h.title for h in selected] == ["peak"]


def test_other_primary_errors_fall_back_without_retrying():
    primary = FlakySelector([], failures=5, error_type=RuntimeError)

    selected = _selector_retrying_on(primary, (ConnectionError,)).select_highlights(_transcript(), 1)

    assert primary.calls == 1
    assert [h.title for h in selected] == ["Highlight 1"]
