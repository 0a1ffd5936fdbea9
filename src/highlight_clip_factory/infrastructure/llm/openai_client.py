from __future__ import annotations

import json
from typing import Any

from openai import APIConnectionError, InternalServerError, OpenAI, OpenAIError, RateLimitError

from highlight_clip_factory.domain.models import Highlight, Transcript

# Passed through unwrapped so the caller can retry them.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (APIConnectionError, RateLimitError, InternalServerError)

SYSTEM_PROMPT = (
    "You are an AI assistant specialized in analyzing video transcriptions and identifying "
    "the most engaging moments for social media clips. Return only valid JSON."
)


class OpenAIHighlightSelector:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        max_sec: float = 60.0,
        temperature: float = 0.7,
        timeout_sec: float = 90.0,
        json_repair: bool = True,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.model = model
        self.max_sec = max_sec
        self.temperature = temperature
        self.timeout_sec = timeout_sec
        self.json_repair = json_repair
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("OPENAI_API_KEY is empty")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout_sec)
        return self._client

    def select_highlights(self, transcript: Transcript, count: int) -> list[Highlight]:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": self._build_user_prompt(transcript, count)},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except TRANSIENT_ERRORS:
            raise
        except OpenAIError as exc:
            raise RuntimeError(f"OpenAI highlight request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise RuntimeError("OpenAI response had no choices")
        content = choices[0].message.content or ""
        return self._parse_highlights(content)

    def _build_user_prompt(self, transcript: Transcript, count: int) -> str:
        segments_text = "\n".join(
            f"[{seg.start_sec:g}s - {seg.end_sec:g}s]: {seg.text}" for seg in transcript.segments
        )
        return (
            f"Analyze the following video transcription and identify the {count} most engaging moments "
            "for TikTok, Instagram, and YouTube Shorts clips.\n\n"
            f"Transcription:\n{segments_text}\n\n"
            "For each highlight, provide:\n"
            "1. startTime: Start time in seconds\n"
            f"2. endTime: End time in seconds (max {self.max_sec:g} seconds duration)\n"
            "3. title: A catchy title for the clip\n"
            "4. description: A brief description of why this moment is engaging\n"
            "5. score: Engagement score (0-100)\n\n"
            "Return the response in JSON format:\n"
            '{"highlights": [{"startTime": number, "endTime": number, "title": string, '
            '"description": string, "score": number}]}'
        )

    def _parse_highlights(self, text: str) -> list[Highlight]:
        if not text.strip():
            raise RuntimeError("OpenAI response body was empty")

        raw = self._loads_json(text)
        if isinstance(raw, dict):
            raw = raw.get("highlights") or raw.get("clips") or []
        if not isinstance(raw, list):
            raise RuntimeError("OpenAI response JSON must contain a highlights array")

        highlights: list[Highlight] = []
        for idx, item in enumerate(raw, start=1):
            if not isinstance(item, dict):
                continue
            try:
                start = float(item["startTime"] if "startTime" in item else item["start_sec"])
                end = float(item["endTime"] if "endTime" in item else item["end_sec"])
                highlights.append(
                    Highlight(
                        start_sec=start,
                        end_sec=end,
                        title=str(item.get("title") or f"Highlight {idx}"),
                        description=str(item.get("description") or ""),
                        score=float(item.get("score", 50)),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue
        return highlights

    def _loads_json(self, text: str) -> Any:
        normalized = text.strip()
        try:
            return json.loads(normalized)
        except json.JSONDecodeError:
            if not self.json_repair:
                raise RuntimeError("OpenAI returned invalid JSON")
        repaired = self._repair_json_text(normalized)
        try:
            return json.loads(repaired)
        except json.JSONDecodeError as exc:
            raise RuntimeError("OpenAI returned invalid JSON (repair failed)") from exc

    def _repair_json_text(self, text: str) -> str:
        body = text.strip()
        if body.startswith("```"):
            lines = body.splitlines()
            if len(lines) >= 3 and lines[-1].strip() == "```":
                body = "\n".join(lines[1:-1]).strip()

        object_start = body.find("{")
        object_end = body.rfind("}")
        if object_start != -1 and object_end != -1 and object_start < object_end:
            return body[object_start : object_end + 1]

        array_start = body.find("[")
        array_end = body.rfind("]")
        if array_start != -1 and array_end != -1 and array_start < array_end:
            return body[array_start : array_end + 1]

        return body
