"""File pattern resolution for release assets."""
import glob
from pathlib import Path


def _matches(pattern: str) -> list[Path]:
    return [
        Path(p) for p in glob.glob(pattern, recursive=True)
        if Path(p).is_file()
    ]


def resolve_paths(patterns: tuple[str, ...] | list[str]) -> list[Path]:
    """Expand glob patterns into a sorted, de-duplicated list of files."""
    found: set[Path] = set()
    for pattern in patterns:
        found.update(_matches(pattern))
    return sorted(found)


def unmatched_patterns(patterns: tuple[str, ...] | list[str]) -> list[str]:
    return [pattern for pattern in patterns if not _matches(pattern)]
