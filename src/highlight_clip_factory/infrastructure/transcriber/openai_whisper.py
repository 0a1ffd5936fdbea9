from __future__ import annotations

from pathlib import Path
from typing import Any

from openai import BadRequestError, OpenAI, OpenAIError

from highlight_clip_factory.domain.errors import TranscriptionServiceError, TranscriptionUnavailable
from highlight_clip_factory.domain.models import Transcript, TranscriptSegment


class OpenAIWhisperTranscriber:
    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        timeout_sec: float = 600.0,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.model = model
        self.timeout_sec = timeout_sec
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise TranscriptionServiceError("OPENAI_API_KEY is empty")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout_sec)
        return self._client

    def transcribe(self, source_path: Path) -> Transcript:
        client = self._get_client()
        try:
            with source_path.open("rb") as fh:
                response = client.audio.transcriptions.create(
                    file=fh,
                    model=self.model,
                    response_format="verbose_json",
                    timestamp_granularities=["segment"],
                )
        except OSError as exc:
            raise TranscriptionUnavailable(f"Cannot read source file {source_path}: {exc}") from exc
        except BadRequestError as exc:
            raise TranscriptionUnavailable(f"Transcription engine rejected {source_path.name}: {exc}") from exc
        except OpenAIError as exc:
            raise TranscriptionServiceError(f"Transcription request failed: {exc}") from exc

        segments: list[TranscriptSegment] = []
        for idx, seg in enumerate(_field(response, "segments") or []):
            try:
                start_sec = float(_field(seg, "start"))
                end_sec = float(_field(seg, "end"))
            except (TypeError, ValueError) as exc:
                raise TranscriptionServiceError(f"Transcript segment {idx} has no usable timestamps") from exc
            segments.append(
                TranscriptSegment(
                    index=idx,
                    start_sec=start_sec,
                    end_sec=end_sec,
                    text=str(_field(seg, "text") or "").strip(),
                )
            )

        return Transcript(full_text=str(_field(response, "text") or "").strip(), segments=segments)


class PlaceholderTranscriber:
    """Deterministic stand-in used when no transcription engine is configured."""

    def transcribe(self, source_path: Path) -> Transcript:
        return placeholder_transcript()


def placeholder_transcript() -> Transcript:
    lines = [
        (0.0, 15.0, "This is a sample video transcription."),
        (15.0, 35.0, "In this video, we discuss important topics and share valuable insights."),
        (35.0, 60.0, "The content is engaging and perfect for social media clips."),
    ]
    segments = [
        TranscriptSegment(index=idx, start_sec=start, end_sec=end, text=text)
        for idx, (start, end, text) in enumerate(lines)
    ]
    return Transcript(full_text=" ".join(text for _, _, text in lines), segments=segments)


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)
