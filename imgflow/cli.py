from __future__ import annotations

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from rich.text import Text

from imgflow.config import (
    ImgFlowConfig,
    load_config,
    normalize_prefix,
    save_config,
)
from imgflow.errors import ImgFlowError
from imgflow.keys import is_compressible
from imgflow.runner import UploadOptions, UploadPlan, plan_upload, run_upload
from imgflow.store import build_object_store


app = typer.Typer(help="Compress local images and upload the ones missing from the bucket.")
console = Console()


@app.callback()
def main() -> None:
    load_dotenv()


def _render_pending(plan: UploadPlan) -> None:
    if not plan.pending:
        return

    table = Table(title="Pending")
    table.add_column("Path")
    table.add_column("Remote key")
    table.add_column("Compress", justify="center")

    for local_file in plan.pending:
        table.add_row(
            local_file.relative_path,
            plan.key_for(local_file),
            "yes" if is_compressible(local_file.extension) else "",
        )

    console.print(table)


def _render_path_summary(title: str, paths: list[str], style: str) -> None:
    if not paths:
        return
    console.print(Text(f"{title} ({len(paths)}):", style=style))
    for path in paths:
        console.print(f"  {path}")


@app.command()
def init(
    root: str = typer.Argument(".", help="Folder holding the images to upload."),
    bucket: str = typer.Option("", "--bucket", help="Target bucket name."),
    prefix: str = typer.Option("", "--prefix", help="Key prefix inside the bucket."),
    region: str = typer.Option("", "--region", help="Bucket region."),
    endpoint: str = typer.Option("", "--endpoint", help="S3-compatible endpoint URL."),
) -> None:
    """Write an imgflow config in the current directory."""
    config = ImgFlowConfig(
        local_root=str(Path(root).expanduser().resolve()),
        bucket=bucket.strip(),
        region=region.strip(),
        endpoint=endpoint.strip(),
        prefix=normalize_prefix(prefix),
    )
    path = save_config(config)
    console.print(f"[green]Initialized imgflow[/green] for {config.local_root_path}")
    console.print(f"Config: {path}")
    if not config.bucket:
        console.print("[yellow]No bucket set. Provide `S3_BUCKET` before running `imgflow push`.[/yellow]")


def _status(include: tuple[str, ...], exclude: tuple[str, ...]) -> int:
    options = UploadOptions(include_patterns=include, exclude_patterns=exclude)
    try:
        config = load_config()
        store = build_object_store(config)
        plan = plan_upload(config, store, scan_filter=options.scan_filter, console=console)
    except KeyboardInterrupt:
        console.print("[yellow]Status interrupted.[/yellow]")
        return 130
    except ImgFlowError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    _render_pending(plan)
    if not plan.pending:
        console.print("[green]Bucket already holds every local image.[/green]")
    console.print(
        f"Local images: {len(plan.scanned)} | Already uploaded: {len(plan.skipped)} "
        f"| Pending: {len(plan.pending)}"
    )
    return 0


@app.command()
def status(
    include: list[str] | None = typer.Option(
        None,
        "--include",
        help="Include glob pattern(s) for paths to consider (repeatable).",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        help="Exclude glob pattern(s) for paths to ignore (repeatable).",
    ),
) -> None:
    """Show which local images are missing from the bucket, without uploading."""
    raise typer.Exit(code=_status(tuple(include or ()), tuple(exclude or ())))


def _push(
    root: str | None,
    include: tuple[str, ...],
    exclude: tuple[str, ...],
    delay: float | None,
) -> int:
    options = UploadOptions(
        include_patterns=include,
        exclude_patterns=exclude,
        delay_seconds=delay,
    )
    try:
        config = load_config(local_root=root)
        result = run_upload(config, options=options, console=console)
    except KeyboardInterrupt:
        console.print(
            "[yellow]Push interrupted.[/yellow] Files uploaded so far stay in the bucket; "
            "rerun `imgflow push` to continue."
        )
        return 130
    except ImgFlowError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    _render_path_summary("Uploaded", result.uploaded_keys, "green")
    _render_path_summary(
        "Failed",
        [f"{path}: {reason}" for path, reason in result.failed.items()],
        "red",
    )
    if not result.uploaded_keys and not result.failed:
        console.print("[green]Nothing to upload.[/green]")
    console.print(
        f"Local images: {result.scanned_count} | Remote objects: {result.remote_count} "
        f"| Already uploaded: {len(result.skipped_paths)} | Compressed: {result.converted_count}"
    )
    return 0


@app.command()
def push(
    root: str | None = typer.Option(
        None,
        "--root",
        help="Image folder to upload. Overrides IMAGES_FOLDER and the config file.",
    ),
    include: list[str] | None = typer.Option(
        None,
        "--include",
        help="Include glob pattern(s) for paths to upload (repeatable).",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        help="Exclude glob pattern(s) for paths to skip (repeatable).",
    ),
    delay: float | None = typer.Option(
        None,
        "--delay",
        min=0,
        help="Seconds to wait before each Tinify request. Defaults to TINIFY_DELAY_SECONDS or 10.",
    ),
) -> None:
    """Compress new images through Tinify and upload everything missing from the bucket."""
    raise typer.Exit(
        code=_push(root, tuple(include or ()), tuple(exclude or ()), delay)
    )
