from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass(slots=True)
class TransferTaskHandle:
    task_id: TaskID
    total: int | None
    path: str


class TransferProgressUI:
    """One Rich progress row per pending image, updated as it moves through the run."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.fields[action]}"),
            TextColumn("{task.fields[path]}"),
            BarColumn(),
            DownloadColumn(binary_units=True),
            TimeElapsedColumn(),
            TextColumn("{task.fields[state]}"),
            console=console,
            transient=False,
            expand=True,
        )

    def __enter__(self) -> "TransferProgressUI":
        self._progress.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._progress.__exit__(exc_type, exc, tb)

    def add_transfer(self, *, action: str, path: str, total_bytes: int | None) -> TransferTaskHandle:
        task_id = self._progress.add_task(
            description=path,
            total=total_bytes,
            completed=0,
            start=False,
            action=action,
            path=path,
            state="queued",
        )
        return TransferTaskHandle(task_id=task_id, total=total_bytes, path=path)

    def start(self, handle: TransferTaskHandle, state: str = "running") -> None:
        self._progress.start_task(handle.task_id)
        self._progress.update(handle.task_id, state=state)

    def complete(self, handle: TransferTaskHandle, total_bytes: int | None = None) -> None:
        kwargs = {"state": "done"}
        if total_bytes is not None:
            kwargs["total"] = total_bytes
            kwargs["completed"] = total_bytes
        elif handle.total is not None:
            kwargs["completed"] = handle.total
        self._progress.update(handle.task_id, **kwargs)
        self._progress.stop_task(handle.task_id)

    def fail(self, handle: TransferTaskHandle, message: str = "failed") -> None:
        self._progress.update(handle.task_id, state=f"[red]{message}[/red]")
        self._progress.stop_task(handle.task_id)
