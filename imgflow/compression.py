from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

import tinify

from imgflow.errors import ConversionError


class Compressor(Protocol):
    def submit(self, data: bytes) -> Any: ...

    def convert(self, handle: Any, mime_type: str) -> Any: ...

    def write_to_file(self, handle: Any, path: Path) -> None: ...


class TinifyCompressor:
    """Compression service backed by the Tinify (TinyPNG) API.

    ``submit`` uploads and compresses the image; ``convert`` only records the
    target format, which Tinify applies when ``write_to_file`` fetches the result.
    """

    def __init__(self, api_key: str) -> None:
        tinify.key = api_key

    def submit(self, data: bytes) -> tinify.Source:
        try:
            return tinify.from_buffer(data)
        except tinify.Error as exc:
            raise ConversionError(f"Tinify rejected the image: {exc}") from exc

    def convert(self, handle: tinify.Source, mime_type: str) -> tinify.Source:
        try:
            return handle.convert(type=[mime_type])
        except tinify.Error as exc:
            raise ConversionError(f"Tinify could not convert to {mime_type}: {exc}") from exc

    def write_to_file(self, handle: tinify.Source, path: Path) -> None:
        try:
            handle.to_file(str(path))
        except tinify.Error as exc:
            raise ConversionError(f"Tinify request failed: {exc}") from exc
