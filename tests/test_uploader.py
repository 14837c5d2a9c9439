"""Tests for the uploader and the S3 object store adapter."""

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from conftest import FakeS3Client, write_image
from imgflow.errors import InventoryError, UploadError
from imgflow.store import ObjectStore
from imgflow.uploader import content_type_for, upload_file


class FailingS3Client(FakeS3Client):
    def put_object(self, **kwargs):
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")

    def paginate(self, *, Bucket: str, Prefix: str):  # noqa: N803
        raise ClientError({"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "ListObjectsV2")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("a.webp", "image/webp"),
        ("a.SVG", "image/svg+xml"),
        ("a.gif", "image/gif"),
        ("a.jpeg", "image/jpeg"),
        ("a.bin", "application/octet-stream"),
    ],
)
def test_content_type_is_inferred_from_extension(name: str, expected: str) -> None:
    """The content type follows the uploaded file's extension."""
    assert content_type_for(Path(name)) == expected


def test_upload_puts_whole_file_under_key(tmp_path: Path, store: ObjectStore, s3_client: FakeS3Client) -> None:
    """One put with the full body and an inferred content type."""
    path = write_image(tmp_path, "icon.svg", "<svg/>")

    sent = upload_file(store, path, "icons/icon.svg")

    assert sent == len(b"<svg/>")
    assert s3_client.put_calls == [
        {
            "Bucket": "assets",
            "Key": "icons/icon.svg",
            "Body": b"<svg/>",
            "ContentType": "image/svg+xml",
        }
    ]


def test_upload_applies_store_prefix(tmp_path: Path) -> None:
    """Keys are written below the configured prefix."""
    client = FakeS3Client()
    store = ObjectStore(client, "assets", "static/img")
    path = write_image(tmp_path, "a.webp")

    upload_file(store, path, "a.webp")

    assert client.put_calls[0]["Key"] == "static/img/a.webp"


def test_upload_missing_file_raises_upload_error(tmp_path: Path, store: ObjectStore) -> None:
    """Unreadable local files are reported as UploadError."""
    with pytest.raises(UploadError):
        upload_file(store, tmp_path / "nope.webp", "nope.webp")


def test_upload_client_error_raises_upload_error(tmp_path: Path) -> None:
    """Errors from the S3 client are wrapped in UploadError."""
    store = ObjectStore(FailingS3Client(), "assets")
    path = write_image(tmp_path, "a.webp")

    with pytest.raises(UploadError):
        upload_file(store, path, "a.webp")


def test_list_keys_reads_every_page_relative_to_prefix() -> None:
    """Listing follows pagination and strips the prefix."""
    client = FakeS3Client(
        ["img/a.webp", "img/sub/b.webp", "img/c.svg", "img/folder/", "other/d.webp"],
        page_size=2,
    )
    store = ObjectStore(client, "assets", "img")

    assert store.list_keys() == {"a.webp", "sub/b.webp", "c.svg"}
    assert client.list_calls == [{"Bucket": "assets", "Prefix": "img/"}]


def test_list_keys_empty_bucket() -> None:
    """Pages without Contents yield an empty snapshot."""
    assert ObjectStore(FakeS3Client(), "assets").list_keys() == set()


def test_list_keys_client_error_raises_inventory_error() -> None:
    """A listing failure is an InventoryError."""
    with pytest.raises(InventoryError):
        ObjectStore(FailingS3Client(), "assets").list_keys()


def test_list_keys_with_explicit_prefix() -> None:
    """An explicit prefix overrides the store's own for one listing."""
    client = FakeS3Client(["img/a.webp", "thumbs/a.webp", "thumbs/sub/b.webp"])
    store = ObjectStore(client, "assets", "img")

    assert store.list_keys("/thumbs") == {"a.webp", "sub/b.webp"}
    assert client.list_calls == [{"Bucket": "assets", "Prefix": "thumbs/"}]
