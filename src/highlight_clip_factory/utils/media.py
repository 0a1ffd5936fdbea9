from __future__ import annotations

import json
import subprocess
import tempfile
from collections.abc import Callable
from pathlib import Path

from highlight_clip_factory.domain.models import MediaInfo

_PROGRESS_TIME_KEYS = ("out_time_us", "out_time_ms")
_STDERR_TAIL_CHARS = 2000


class CommandError(RuntimeError):
    pass


def run_command(cmd: list[str]) -> str:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise CommandError(f"Command could not start: {cmd[0]}: {exc}") from exc
    if proc.returncode != 0:
        raise CommandError(f"Command failed: {' '.join(cmd)}\n{proc.stderr}")
    return proc.stdout


def parse_progress_line(line: str, duration_sec: float) -> float | None:
    """Map one `-progress` key=value line to a percentage, or None if it carries no position."""
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    if key == "progress" and value == "end":
        return 100.0
    if key not in _PROGRESS_TIME_KEYS or duration_sec <= 0:
        return None
    try:
        # Both keys are microseconds; out_time_ms is misnamed upstream.
        position_sec = int(value) / 1_000_000
    except ValueError:
        return None
    return max(0.0, min(100.0, position_sec / duration_sec * 100.0))


def run_ffmpeg_with_progress(
    cmd: list[str],
    duration_sec: float,
    on_progress: Callable[[float], None] | None = None,
) -> None:
    with tempfile.TemporaryFile(mode="w+", encoding="utf-8") as stderr_file:
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=stderr_file, text=True)
        except OSError as exc:
            raise CommandError(f"Command could not start: {cmd[0]}: {exc}") from exc

        try:
            if proc.stdout is not None:
                for line in proc.stdout:
                    percent = parse_progress_line(line, duration_sec)
                    if percent is not None and on_progress:
                        on_progress(percent)
            ret = proc.wait()
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()

        if ret != 0:
            stderr_file.seek(0)
            tail = stderr_file.read()[-_STDERR_TAIL_CHARS:].strip()
            raise CommandError(f"Command failed (code={ret}): {' '.join(cmd)}\n{tail}")


def ffprobe_media(input_path: Path) -> MediaInfo:
    cmd = [
        "ffprobe",
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=width,height,r_frame_rate",
        "-show_entries",
        "format=duration",
        "-of",
        "json",
        str(input_path),
    ]
    payload = json.loads(run_command(cmd))
    streams = payload.get("streams") or []
    if not streams:
        raise CommandError(f"No video stream found: {input_path}")
    stream = streams[0]
    duration_sec = float(payload.get("format", {}).get("duration", 0.0))
    frame_rate = stream.get("r_frame_rate", "30/1")
    num, den = frame_rate.split("/")
    fps = float(num) / float(den) if float(den) else 0.0
    return MediaInfo(
        duration_sec=duration_sec,
        width=int(stream["width"]),
        height=int(stream["height"]),
        fps=fps,
    )
