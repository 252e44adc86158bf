"""Pruebas del almacén de fotos sobre S3 simulado con moto."""

from __future__ import annotations

import logging

import boto3
import pytest
from moto import mock_aws

from photo_uploader.services.storage import (
    S3PhotoStore,
    StoreWriteError,
    metadata_value,
    photo_key,
)

TEST_BUCKET = "gallery-photos"
TEST_REGION = "us-east-1"
ALL_USERS = "http://acs.amazonaws.com/groups/global/AllUsers"


@pytest.fixture(name="s3_client")
def fixture_s3_client(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    with mock_aws():
        client = boto3.client("s3", region_name=TEST_REGION)
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture(name="photo_store")
def fixture_photo_store(s3_client) -> S3PhotoStore:
    return S3PhotoStore(TEST_BUCKET, client=s3_client)


async def test_put_photo_writes_public_object_with_caption(photo_store: S3PhotoStore, s3_client) -> None:
    await photo_store.put_photo(
        key="photos/p/q/img.png", data=b"\x89PNG-data", content_type="image/png", caption="Hello"
    )

    head = s3_client.head_object(Bucket=TEST_BUCKET, Key="photos/p/q/img.png")
    assert head["ContentType"] == "image/png"
    assert head["Metadata"] == {"caption": "Hello"}
    body = s3_client.get_object(Bucket=TEST_BUCKET, Key="photos/p/q/img.png")["Body"].read()
    assert body == b"\x89PNG-data"

    grants = s3_client.get_object_acl(Bucket=TEST_BUCKET, Key="photos/p/q/img.png")["Grants"]
    assert any(
        grant["Grantee"].get("URI") == ALL_USERS and grant["Permission"] == "READ" for grant in grants
    )


async def test_put_photo_same_key_overwrites(photo_store: S3PhotoStore, s3_client) -> None:
    for caption in ("primera", "segunda"):
        await photo_store.put_photo(
            key="photos/a.jpg", data=caption.encode(), content_type="image/jpeg", caption=caption
        )

    listing = s3_client.list_objects_v2(Bucket=TEST_BUCKET, Prefix="photos/")
    assert listing["KeyCount"] == 1
    head = s3_client.head_object(Bucket=TEST_BUCKET, Key="photos/a.jpg")
    assert head["Metadata"]["caption"] == "segunda"


async def test_put_photo_missing_bucket_raises(s3_client) -> None:
    store = S3PhotoStore("does-not-exist", client=s3_client)

    with pytest.raises(StoreWriteError, match="NoSuchBucket"):
        await store.put_photo(key="photos/a.jpg", data=b"x", content_type="image/jpeg", caption="c")


async def test_put_photo_failure_logs_event(s3_client, caplog: pytest.LogCaptureFixture) -> None:
    store = S3PhotoStore("does-not-exist", client=s3_client)

    with caplog.at_level(logging.ERROR, logger="photo_uploader.services.storage"):
        with pytest.raises(StoreWriteError):
            await store.put_photo(key="photos/a.jpg", data=b"x", content_type="image/jpeg", caption="c")

    record = next(r for r in caplog.records if r.getMessage() == "storage.write_failed")
    assert record.levelno == logging.ERROR
    assert record.key == "photos/a.jpg"
    assert record.code == "NoSuchBucket"
    assert "NoSuchBucket" in record.error


def test_store_builds_default_client_inside_mock(s3_client) -> None:
    store = S3PhotoStore(TEST_BUCKET, region=TEST_REGION)

    assert store.bucket == TEST_BUCKET


def test_photo_key_is_deterministic() -> None:
    assert photo_key("AC1/ME1") == "photos/AC1/ME1"
    assert photo_key("AC1/ME1") == photo_key("AC1/ME1")


def test_metadata_value_encodes_non_ascii_and_line_breaks() -> None:
    assert metadata_value("Hello (1/2)") == "Hello (1/2)"
    assert metadata_value("Año nuevo") == "A%C3%B1o nuevo"
    assert metadata_value("uno\ndos") == "uno%0Ados"
