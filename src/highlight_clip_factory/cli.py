from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from highlight_clip_factory.app import build_orchestrator
from highlight_clip_factory.domain.errors import ClipFactoryError
from highlight_clip_factory.domain.models import ProcessOptions, RenderEvent, VideoRecord, VideoStatus
from highlight_clip_factory.utils.media import CommandError, ffprobe_media


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hcf", description="Cut highlight clips out of a long video")
    parser.add_argument(
        "--root-dir",
        type=Path,
        default=Path.cwd(),
        help="Project root holding config/default.toml and .env (default: current directory)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Ingest a video and render its highlight clips")
    run_cmd.add_argument("video", type=Path, help="Path to the source video")
    run_cmd.add_argument("--clip-count", type=int, default=None, help="Number of clips (default: from config)")
    run_cmd.add_argument("--subtitles", action="store_true", help="Burn subtitles into each clip")
    run_cmd.add_argument("--quiet", action="store_true", help="Do not print render progress")

    probe_cmd = sub.add_parser("probe", help="Print stream info for a video via ffprobe")
    probe_cmd.add_argument("video", type=Path)

    sub.add_parser("list", help="List known videos (sqlite storage backend)")

    delete_cmd = sub.add_parser("delete", help="Delete a video with its clips")
    delete_cmd.add_argument("video_id")

    return parser


def video_payload(record: VideoRecord) -> dict:
    return {
        "id": record.video_id,
        "filename": record.original_filename,
        "status": record.status.value,
        "created_at": record.created_at.isoformat(),
        "completed_at": record.completed_at.isoformat() if record.completed_at else None,
        "failure_reason": record.failure_reason,
        "clips": [
            {
                "id": clip.clip_id,
                "start_sec": clip.start_sec,
                "end_sec": clip.end_sec,
                "duration_sec": clip.duration_sec,
                "title": clip.title,
                "description": clip.description,
                "filename": clip.filename,
                "path": str(clip.output_path),
                "has_subtitles": clip.has_subtitles,
            }
            for clip in record.clips
        ],
    }


def _print_progress(index: int, event: RenderEvent) -> None:
    if event.kind == "progress":
        print(f"clip {index}: {event.percent:5.1f}%", file=sys.stderr)
    elif event.kind == "failed":
        print(f"clip {index}: failed: {event.message}", file=sys.stderr)
    else:
        print(f"clip {index}: done", file=sys.stderr)


def _cmd_run(args: argparse.Namespace) -> int:
    orch = build_orchestrator(args.root_dir)
    try:
        clip_count = args.clip_count if args.clip_count is not None else orch.default_clip_count
        options = ProcessOptions(with_subtitles=args.subtitles, clip_count=clip_count)
        record = orch.ingest_file(args.video)
        result = orch.process(
            record.video_id,
            options,
            on_event=None if args.quiet else _print_progress,
        )
    finally:
        orch.shutdown()
    print(json.dumps(video_payload(result), ensure_ascii=False, indent=2))
    return 0 if result.status is VideoStatus.COMPLETED else 1


def _cmd_probe(args: argparse.Namespace) -> int:
    info = ffprobe_media(args.video)
    print(
        json.dumps(
            {"duration_sec": info.duration_sec, "width": info.width, "height": info.height, "fps": info.fps},
            indent=2,
        )
    )
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    orch = build_orchestrator(args.root_dir)
    try:
        payload = [video_payload(record) for record in orch.list_videos()]
    finally:
        orch.shutdown()
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _cmd_delete(args: argparse.Namespace) -> int:
    orch = build_orchestrator(args.root_dir)
    try:
        orch.delete_video(args.video_id)
    finally:
        orch.shutdown()
    print(f"deleted {args.video_id}")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    commands = {
        "run": _cmd_run,
        "probe": _cmd_probe,
        "list": _cmd_list,
        "delete": _cmd_delete,
    }
    try:
        raise SystemExit(commands[args.command](args))
    except (ClipFactoryError, CommandError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
