from __future__ import annotations

from pathlib import Path

from imgflow.errors import InvalidPathError


COMPRESSIBLE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})
IMAGE_EXTENSIONS = COMPRESSIBLE_EXTENSIONS | {".svg", ".gif"}
TARGET_EXTENSION = ".webp"
TARGET_MIME_TYPE = "image/webp"

REMOTE_SEPARATOR = "/"
# Staged files live flat in one directory, so folder names are joined without "/".
STAGING_SEPARATOR = "__"


def is_compressible(extension: str) -> bool:
    return extension.lower() in COMPRESSIBLE_EXTENSIONS


def key_extension(extension: str) -> str:
    """Extension a file ends up with remotely: compressible types all become WebP."""
    normalized = extension.lower()
    if normalized in COMPRESSIBLE_EXTENSIONS:
        return TARGET_EXTENSION
    return normalized


def parent_folder_names(path: Path, scan_root: Path) -> list[str]:
    """Folder names between ``scan_root`` (exclusive) and ``path``, top-down."""
    path = Path(path)
    scan_root = Path(scan_root)
    names: list[str] = []
    current = path.parent
    while current != scan_root:
        if current == current.parent:
            raise InvalidPathError(f"{path} is not located under {scan_root}")
        names.append(current.name)
        current = current.parent
    names.reverse()
    return names


def derive_key(path: Path, scan_root: Path, separator: str = REMOTE_SEPARATOR) -> str:
    path = Path(path)
    folders = parent_folder_names(path, scan_root)
    name = f"{path.stem}{key_extension(path.suffix)}"
    return separator.join([*folders, name])
