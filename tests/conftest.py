"""Shared fixtures: an on-disk image tree plus in-memory store and compressor fakes."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from imgflow.config import ImgFlowConfig
from imgflow.errors import ConversionError
from imgflow.store import ObjectStore


class FakeS3Client:
    """Just enough of the boto3 S3 client for listing and putting objects."""

    def __init__(self, keys: list[str] | None = None, *, page_size: int = 1000) -> None:
        self.objects: dict[str, dict[str, Any]] = {key: {"Body": b""} for key in keys or []}
        self.page_size = page_size
        self.list_calls: list[dict[str, Any]] = []
        self.put_calls: list[dict[str, Any]] = []

    def get_paginator(self, operation: str) -> "FakeS3Client":
        assert operation == "list_objects_v2"
        return self

    def paginate(self, *, Bucket: str, Prefix: str):  # noqa: N803
        self.list_calls.append({"Bucket": Bucket, "Prefix": Prefix})
        keys = sorted(key for key in self.objects if key.startswith(Prefix))
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), self.page_size):
            yield {"Contents": [{"Key": key} for key in keys[start : start + self.page_size]]}

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        self.put_calls.append(kwargs)
        self.objects[kwargs["Key"]] = kwargs
        return {}


class FakeCompressor:
    """Records service calls and writes a marker payload instead of a real WebP."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.submitted: list[bytes] = []
        self.converted: list[str] = []
        self.written: list[Path] = []

    def submit(self, data: bytes) -> dict[str, Any]:
        self.submitted.append(data)
        if data.decode(errors="ignore") in self.fail_on:
            raise ConversionError("quota exceeded")
        return {"data": data, "mime": None}

    def convert(self, handle: dict[str, Any], mime_type: str) -> dict[str, Any]:
        self.converted.append(mime_type)
        return {**handle, "mime": mime_type}

    def write_to_file(self, handle: dict[str, Any], path: Path) -> None:
        self.written.append(Path(path))
        Path(path).write_bytes(b"compressed:" + handle["data"])


class CountingLimiter:
    def __init__(self) -> None:
        self.waits = 0

    def wait(self) -> None:
        self.waits += 1


def write_image(root: Path, relative_path: str, content: str | None = None) -> Path:
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content if content is not None else relative_path, encoding="utf-8")
    return path


@pytest.fixture
def image_root(tmp_path: Path) -> Path:
    root = tmp_path / "images"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, image_root: Path) -> ImgFlowConfig:
    return ImgFlowConfig(
        local_root=str(image_root),
        bucket="assets",
        staging_dir=str(tmp_path / "staging"),
        delay_seconds=0,
    )


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def store(s3_client: FakeS3Client) -> ObjectStore:
    return ObjectStore(s3_client, "assets")


@pytest.fixture
def compressor() -> FakeCompressor:
    return FakeCompressor()


@pytest.fixture
def limiter() -> CountingLimiter:
    return CountingLimiter()


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


def console_text(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]
