from __future__ import annotations

from pathlib import Path

from imgflow.errors import UploadError
from imgflow.store import ObjectStore


CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def upload_file(store: ObjectStore, local_path: Path, key: str) -> int:
    """Read the whole file and put it under ``key``. Returns the number of bytes sent."""
    local_path = Path(local_path)
    try:
        body = local_path.read_bytes()
    except OSError as exc:
        raise UploadError(f"Cannot read {local_path}: {exc}") from exc
    store.put_object(key, body, content_type_for(local_path))
    return len(body)
