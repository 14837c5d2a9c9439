from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class LocalFile:
    path: Path
    relative_path: str
    extension: str


@dataclass(frozen=True, slots=True)
class ConversionResult:
    key: str
    local_path: Path
    converted: bool = False


@dataclass(slots=True)
class RunResult:
    scanned_count: int = 0
    remote_count: int = 0
    uploaded_keys: list[str] = field(default_factory=list)
    skipped_paths: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    converted_count: int = 0
