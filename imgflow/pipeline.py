from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from imgflow.compression import Compressor
from imgflow.errors import ConfigurationError, ConversionError
from imgflow.keys import (
    STAGING_SEPARATOR,
    TARGET_EXTENSION,
    TARGET_MIME_TYPE,
    derive_key,
    is_compressible,
)
from imgflow.models import ConversionResult, LocalFile
from imgflow.throttle import RateLimiter

if TYPE_CHECKING:
    from rich.console import Console


def init_staging_dir(path: Path, *, console: "Console | None" = None) -> Path:
    """Remove any staging directory left from a previous run and create it empty."""
    path = Path(path)
    if path.exists() and not path.is_dir():
        raise ConfigurationError(f"Staging path exists and is not a directory: {path}")
    try:
        if path.exists():
            shutil.rmtree(path)
            if console is not None:
                console.print(f"[dim]Folder {path} deleted[/dim]")
        path.mkdir(parents=True)
    except OSError as exc:
        raise ConfigurationError(f"Cannot prepare staging directory {path}: {exc}") from exc
    if console is not None:
        console.print(f"[dim]Folder {path} created[/dim]")
    return path


class ConversionPipeline:
    """Turns one pending file at a time into something ready to upload.

    Compressible images go through the compression service (behind the rate
    limiter) and are written to the staging directory; everything else is
    passed through untouched.
    """

    def __init__(
        self,
        scan_root: Path,
        staging_dir: Path,
        *,
        compressor_factory: Callable[[], Compressor],
        limiter: RateLimiter,
        console: "Console | None" = None,
    ) -> None:
        self.scan_root = Path(scan_root)
        self.staging_dir = Path(staging_dir)
        self._compressor_factory = compressor_factory
        self._compressor: Compressor | None = None
        self._limiter = limiter
        self._console = console

    @property
    def compressor(self) -> Compressor:
        if self._compressor is None:
            self._compressor = self._compressor_factory()
        return self._compressor

    def process(
        self,
        local_file: LocalFile,
        *,
        on_waiting: Callable[[], None] | None = None,
        on_compressing: Callable[[], None] | None = None,
    ) -> ConversionResult:
        key = derive_key(local_file.path, self.scan_root)
        if not is_compressible(local_file.extension):
            return ConversionResult(key=key, local_path=local_file.path, converted=False)

        staged_name = derive_key(local_file.path, self.scan_root, STAGING_SEPARATOR)
        target = self.staging_dir / staged_name
        needs_convert = local_file.extension.lower() != TARGET_EXTENSION
        compressor = self.compressor

        if on_waiting is not None:
            on_waiting()
        self._limiter.wait()

        if on_compressing is not None:
            on_compressing()
        if self._console is not None:
            self._console.print(f"{staged_name} start processing...")
        try:
            handle = compressor.submit(local_file.path.read_bytes())
            if needs_convert:
                handle = compressor.convert(handle, TARGET_MIME_TYPE)
            compressor.write_to_file(handle, target)
        except OSError as exc:
            raise ConversionError(f"{local_file.relative_path}: {exc}") from exc

        if self._console is not None:
            self._console.print(f"{staged_name} processing completed")
        return ConversionResult(key=key, local_path=target, converted=True)
