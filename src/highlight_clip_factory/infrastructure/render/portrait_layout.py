from __future__ import annotations


def build_filtergraph(
    subtitle_path: str | None,
    video_width: int,
    video_height: int,
    font_size: int,
    alignment: int,
    margin_v: int,
) -> str:
    """Fill the target frame by over-scaling then center-cropping; never letterbox."""
    filters = [
        f"scale={video_width}:{video_height}:force_original_aspect_ratio=increase",
        f"crop={video_width}:{video_height}",
    ]
    if subtitle_path:
        safe_sub_path = (
            subtitle_path.replace("\\", r"\\")
            .replace(":", r"\:")
            .replace("'", r"\'")
        )
        filters.append(
            f"subtitles='{safe_sub_path}'"
            f":force_style='Alignment={int(alignment)},FontSize={int(font_size)},MarginV={int(margin_v)}'"
        )
    return ",".join(filters)
