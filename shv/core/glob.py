"""Include/exclude glob matching for project-relative paths.

Supports ``*`` inside a segment and ``**`` spanning zero or more whole segments,
anywhere in the pattern (``a/**/b`` matches ``a/b`` as well as ``a/x/y/b``).
"""

import re
from functools import lru_cache


def matches_glob(relative_path: str, pattern: str) -> bool:
    """Return True if a ``/``-separated relative path matches the glob pattern."""
    path_parts = relative_path.replace("\\", "/").split("/")
    pattern_parts = pattern.replace("\\", "/").split("/")
    return _match_parts(path_parts, pattern_parts, 0, 0)


def _match_parts(path_parts: list[str], pattern_parts: list[str], path_idx: int, pattern_idx: int) -> bool:
    if pattern_idx == len(pattern_parts):
        return path_idx == len(path_parts)

    if path_idx == len(path_parts):
        return all(part == "**" for part in pattern_parts[pattern_idx:])

    current = pattern_parts[pattern_idx]
    if current == "**":
        # consume the ** or let it swallow one more path segment
        if _match_parts(path_parts, pattern_parts, path_idx, pattern_idx + 1):
            return True
        return _match_parts(path_parts, pattern_parts, path_idx + 1, pattern_idx)

    if _match_segment(path_parts[path_idx], current):
        return _match_parts(path_parts, pattern_parts, path_idx + 1, pattern_idx + 1)
    return False


def _match_segment(segment: str, pattern: str) -> bool:
    if pattern == "*":
        return True
    if "*" in pattern:
        return _segment_regex(pattern).fullmatch(segment) is not None
    return segment == pattern


@lru_cache(maxsize=256)
def _segment_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(".*".join(re.escape(piece) for piece in pattern.split("*")))
