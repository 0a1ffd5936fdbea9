from __future__ import annotations

import re
from pathlib import Path


def safe_extension(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if re.fullmatch(r"\.[0-9a-z]{1,8}", suffix):
        return suffix
    return ""


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path
