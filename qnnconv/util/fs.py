import math
from pathlib import Path


def ensure_dir(d: Path) -> Path:
    d.mkdir(parents=True, exist_ok=True)
    return d


def find_files(root: Path, pattern: str) -> list[Path]:
    """
    Recursive glob under `root`, regular files only, sorted by posix path so the
    order does not depend on the filesystem's directory listing.
    """
    if not root.is_dir():
        return []
    return sorted((p for p in root.rglob(pattern) if p.is_file()), key=lambda p: p.as_posix())


def find_first(root: Path, pattern: str) -> Path | None:
    files = find_files(root, pattern)
    return files[0] if files else None


def human_size(n: int) -> str:
    """`du -h` style size: 512B, 4.0K, 12M, 1.3G (rounded up)."""
    if n < 1024:
        return f"{n}B"
    units = ("K", "M", "G", "T", "P")
    value = n / 1024.0
    i = 0
    while value >= 1024.0 and i < len(units) - 1:
        value /= 1024.0
        i += 1
    if value < 10:
        return f"{math.ceil(value * 10) / 10:.1f}{units[i]}"
    return f"{math.ceil(value)}{units[i]}"


def file_size(p: Path) -> str:
    try:
        return human_size(p.stat().st_size)
    except OSError:
        return "?"
