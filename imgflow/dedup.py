from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, AbstractSet, Iterable

from imgflow.errors import InvalidPathError
from imgflow.keys import derive_key
from imgflow.models import LocalFile

if TYPE_CHECKING:
    from rich.console import Console


def filter_existing(
    files: Iterable[LocalFile],
    inventory: AbstractSet[str],
    scan_root: Path,
    *,
    console: "Console | None" = None,
) -> list[LocalFile]:
    """Drop files whose derived key is already in the inventory snapshot, keeping order."""
    pending: list[LocalFile] = []
    for local_file in files:
        try:
            key = derive_key(local_file.path, scan_root)
        except InvalidPathError as exc:
            if console is not None:
                console.print(f"[yellow]{exc}, skip[/yellow]")
            continue
        if key in inventory:
            if console is not None:
                console.print(f"[dim]{key} already exists, skip[/dim]")
            continue
        pending.append(local_file)
    return pending
