from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from rich.console import Console

from imgflow.auth import resolve_tinify_key
from imgflow.compression import Compressor, TinifyCompressor
from imgflow.config import ImgFlowConfig
from imgflow.dedup import filter_existing
from imgflow.errors import ConfigurationError, ConversionError, InvalidPathError, UploadError
from imgflow.filters import ScanFilter, build_scan_filter
from imgflow.keys import derive_key, is_compressible
from imgflow.models import LocalFile, RunResult
from imgflow.pipeline import ConversionPipeline, init_staging_dir
from imgflow.scanner import scan_images_with_status
from imgflow.store import ObjectStore, build_object_store
from imgflow.throttle import FixedDelayLimiter, RateLimiter
from imgflow.transfer_ui import TransferProgressUI, TransferTaskHandle
from imgflow.uploader import upload_file


@dataclass(slots=True)
class UploadOptions:
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    delay_seconds: float | None = None

    @property
    def scan_filter(self) -> ScanFilter:
        return build_scan_filter(self.include_patterns, self.exclude_patterns)


@dataclass(slots=True)
class UploadPlan:
    scan_root: Path
    scanned: list[LocalFile]
    remote_count: int
    pending: list[LocalFile]

    def key_for(self, local_file: LocalFile) -> str:
        return derive_key(local_file.path, self.scan_root)

    @property
    def skipped(self) -> list[LocalFile]:
        pending = set(self.pending)
        return [local_file for local_file in self.scanned if local_file not in pending]


def _check_staging_location(scan_root: Path, staging_dir: Path) -> None:
    if staging_dir == scan_root or staging_dir in scan_root.parents:
        raise ConfigurationError(
            f"Staging directory {staging_dir} would contain the image folder {scan_root}; "
            "it is wiped on every run. Set `IMGFLOW_STAGING_DIR` elsewhere."
        )


def _default_compressor() -> Compressor:
    return TinifyCompressor(resolve_tinify_key())


def plan_upload(
    config: ImgFlowConfig,
    store: ObjectStore,
    *,
    scan_filter: ScanFilter | None = None,
    console: Console | None = None,
) -> UploadPlan:
    """Scan the image folder and drop everything the bucket already holds."""
    scan_root = config.local_root_path
    staging_dir = config.staging_path
    _check_staging_location(scan_root, staging_dir)

    scanned = scan_images_with_status(
        scan_root,
        scan_filter=scan_filter,
        exclude_dirs=(staging_dir,),
        console=console,
    )
    # Taken once: uploads made later in this run are not reflected in it.
    inventory = store.list_keys()
    if console is not None:
        console.print(
            f"Remote objects under s3://{store.bucket}/{store.prefix}: {len(inventory)}"
        )
    pending = filter_existing(scanned, inventory, scan_root, console=console)
    return UploadPlan(
        scan_root=scan_root,
        scanned=scanned,
        remote_count=len(inventory),
        pending=pending,
    )


def _file_size(local_file: LocalFile) -> int | None:
    try:
        return local_file.path.stat().st_size
    except OSError:
        return None


def run_upload(
    config: ImgFlowConfig,
    *,
    options: UploadOptions | None = None,
    store: ObjectStore | None = None,
    compressor_factory: Callable[[], Compressor] | None = None,
    limiter: RateLimiter | None = None,
    console: Console | None = None,
) -> RunResult:
    """Scan, deduplicate, compress and upload, strictly one file at a time.

    Configuration, scan and inventory errors abort the run. Anything that goes
    wrong with a single file is reported in ``RunResult.failed`` and the run
    moves on to the next file.
    """
    options = options or UploadOptions()
    store = store or build_object_store(config)
    plan = plan_upload(config, store, scan_filter=options.scan_filter, console=console)
    result = RunResult(
        scanned_count=len(plan.scanned),
        remote_count=plan.remote_count,
        skipped_paths=[local_file.relative_path for local_file in plan.skipped],
    )
    init_staging_dir(config.staging_path, console=console)
    if not plan.pending:
        return result

    delay = config.delay_seconds if options.delay_seconds is None else options.delay_seconds
    pipeline = ConversionPipeline(
        plan.scan_root,
        config.staging_path,
        compressor_factory=compressor_factory or _default_compressor,
        limiter=limiter or FixedDelayLimiter(delay),
        console=console,
    )
    if any(is_compressible(local_file.extension) for local_file in plan.pending):
        # Surface a missing API key before any work starts.
        pipeline.compressor

    ui_context = TransferProgressUI(console=console) if console is not None else nullcontext()
    with ui_context as ui:
        handles: dict[str, TransferTaskHandle] = {}
        if ui is not None:
            for local_file in plan.pending:
                handles[local_file.relative_path] = ui.add_transfer(
                    action="WEBP" if is_compressible(local_file.extension) else "PUT",
                    path=local_file.relative_path,
                    total_bytes=_file_size(local_file),
                )

        for local_file in plan.pending:
            handle = handles.get(local_file.relative_path)

            def _set_state(state: str, handle=handle) -> None:
                if ui is not None and handle is not None:
                    ui.start(handle, state=state)

            try:
                conversion = pipeline.process(
                    local_file,
                    on_waiting=lambda: _set_state("waiting"),
                    on_compressing=lambda: _set_state("compressing"),
                )
                if conversion.converted:
                    result.converted_count += 1
                _set_state("uploading")
                sent = upload_file(store, conversion.local_path, conversion.key)
            except (InvalidPathError, ConversionError, UploadError) as exc:
                result.failed[local_file.relative_path] = str(exc)
                if ui is not None and handle is not None:
                    ui.fail(handle)
                if console is not None:
                    console.print(f"[red]{local_file.relative_path} failed:[/red] {exc}")
                continue

            result.uploaded_keys.append(conversion.key)
            if ui is not None and handle is not None:
                ui.complete(handle, total_bytes=sent)
            if console is not None:
                console.print(f"[green]{conversion.key} uploaded successfully[/green]")

    return result
