from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from imgflow.errors import ScanError
from imgflow.filters import ScanFilter
from imgflow.models import LocalFile

if TYPE_CHECKING:
    from rich.console import Console


def _is_within(path: Path, directories: tuple[Path, ...]) -> bool:
    return any(path == directory or directory in path.parents for directory in directories)


def scan_images(
    root: Path,
    *,
    scan_filter: ScanFilter | None = None,
    exclude_dirs: Iterable[Path] = (),
) -> list[LocalFile]:
    """Collect every image below ``root`` in a stable, sorted walk order."""
    root = Path(root).resolve()
    if not root.exists():
        raise ScanError(f"Scan root does not exist: {root}")
    if not root.is_dir():
        raise ScanError(f"Scan root is not a directory: {root}")

    scan_filter = scan_filter or ScanFilter()
    excluded = tuple(Path(directory).resolve() for directory in exclude_dirs)
    files: list[LocalFile] = []

    try:
        candidates = sorted(root.rglob("*"))
    except OSError as exc:
        raise ScanError(f"Cannot read scan root {root}: {exc}") from exc

    for file_path in candidates:
        if excluded and _is_within(file_path, excluded):
            continue
        if not file_path.is_file():
            continue
        relative_path = file_path.relative_to(root).as_posix()
        if not scan_filter.matches(relative_path):
            continue
        files.append(
            LocalFile(
                path=file_path,
                relative_path=relative_path,
                extension=file_path.suffix.lower(),
            )
        )

    return files


def scan_images_with_status(
    root: Path,
    *,
    scan_filter: ScanFilter | None = None,
    exclude_dirs: Iterable[Path] = (),
    console: "Console | None" = None,
) -> list[LocalFile]:
    if console is None:
        return scan_images(root, scan_filter=scan_filter, exclude_dirs=exclude_dirs)
    with console.status(f"Scanning {root} ..."):
        files = scan_images(root, scan_filter=scan_filter, exclude_dirs=exclude_dirs)
    console.print(f"Found {len(files)} image(s) under [bold]{root}[/bold]")
    return files
