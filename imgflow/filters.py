from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from imgflow.keys import IMAGE_EXTENSIONS


def _normalize_pattern(pattern: str) -> str:
    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def _match_pattern(path: str, pattern: str) -> bool:
    path_obj = PurePosixPath(path)
    norm = _normalize_pattern(pattern)
    if not norm:
        return False
    # Patterns match anchored at the scan root or at any depth.
    return (
        path_obj.match(norm)
        or path_obj.match(f"**/{norm}")
        or (norm.endswith("/") and path.startswith(norm))
    )


@dataclass(frozen=True, slots=True)
class ScanFilter:
    extensions: frozenset[str] = IMAGE_EXTENSIONS
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()

    def accepts_extension(self, extension: str) -> bool:
        return extension.lower() in self.extensions

    def matches(self, relative_path: str) -> bool:
        if not self.accepts_extension(PurePosixPath(relative_path).suffix):
            return False
        if self.include_patterns and not any(
            _match_pattern(relative_path, pattern) for pattern in self.include_patterns
        ):
            return False
        if any(_match_pattern(relative_path, pattern) for pattern in self.exclude_patterns):
            return False
        return True


def build_scan_filter(
    include_patterns: list[str] | tuple[str, ...] | None = None,
    exclude_patterns: list[str] | tuple[str, ...] | None = None,
) -> ScanFilter:
    include = tuple(_normalize_pattern(pattern) for pattern in (include_patterns or []) if pattern)
    exclude = tuple(_normalize_pattern(pattern) for pattern in (exclude_patterns or []) if pattern)
    return ScanFilter(include_patterns=include, exclude_patterns=exclude)
