import io
import os
import sys
from datetime import datetime
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from stockroom.core.enums import DocumentType
from stockroom.core.errors import StoreIOError
from stockroom.services.storage import LocalBlobStore, S3BlobStore, item_prefix

NOW = datetime(2024, 5, 1, 12, 0)


class FakeS3Client:
    """Records calls made by ``S3BlobStore`` and pages listings two keys at a time."""

    def __init__(self, fail_put=False):
        self.objects = {}
        self.fail_put = fail_put
        self.deleted_batches = []

    def put_object(self, Bucket, Key, Body, ContentType):
        if self.fail_put:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
        self.objects[Key] = (Body, ContentType)

    def delete_object(self, Bucket, Key):
        self.objects.pop(Key, None)

    def list_objects_v2(self, Bucket, Prefix, ContinuationToken=None):
        keys = sorted(k for k in self.objects if k.startswith(Prefix))
        start = int(ContinuationToken or 0)
        page = keys[start : start + 2]
        truncated = start + 2 < len(keys)
        response = {"Contents": [{"Key": k} for k in page], "IsTruncated": truncated}
        if truncated:
            response["NextContinuationToken"] = str(start + 2)
        return response

    def delete_objects(self, Bucket, Delete):
        keys = [obj["Key"] for obj in Delete["Objects"]]
        self.deleted_batches.append(keys)


def test_local_store_upload_and_delete(tmp_path):
    store = LocalBlobStore(tmp_path)

    document = store.upload("Manual.PDF", "application/pdf", io.BytesIO(b"%PDF-1.4"), item_prefix("abc"), now=NOW)

    assert document.name == "Manual.PDF"
    assert document.type is DocumentType.PDF
    assert document.size == 8
    assert document.upload_date == NOW
    assert document.path.startswith("items/abc/") and document.path.endswith(".pdf")
    assert document.url == f"/files/{document.path}"
    assert (tmp_path / document.path).read_bytes() == b"%PDF-1.4"

    store.delete(document.path)
    assert not (tmp_path / document.path).exists()
    store.delete(document.path)


def test_local_store_delete_all_counts_files(tmp_path):
    store = LocalBlobStore(tmp_path)
    for name in ("a.png", "b.txt"):
        store.upload(name, None, io.BytesIO(b"x"), item_prefix("abc"))
    store.upload("c.txt", None, io.BytesIO(b"x"), item_prefix("other"))

    assert store.delete_all(item_prefix("abc")) == 2
    assert store.delete_all(item_prefix("abc")) == 0
    assert (tmp_path / "items" / "other").is_dir()


def test_local_store_rejects_paths_outside_root(tmp_path):
    store = LocalBlobStore(tmp_path / "blobs")

    with pytest.raises(ValueError):
        store.delete("../secrets.txt")


def test_s3_store_upload_and_paged_delete():
    client = FakeS3Client()
    store = S3BlobStore("bucket", client=client, public_url="https://cdn.example.com/")

    docs = [
        store.upload(f"photo{i}.jpg", "image/jpeg", io.BytesIO(b"img"), item_prefix("abc"), now=NOW)
        for i in range(3)
    ]

    assert all(doc.type is DocumentType.IMAGE for doc in docs)
    assert docs[0].url == f"https://cdn.example.com/{docs[0].path}"
    assert client.objects[docs[0].path] == (b"img", "image/jpeg")

    assert store.delete_all(item_prefix("abc")) == 3
    assert [len(batch) for batch in client.deleted_batches] == [2, 1]


def test_s3_failure_is_reported_as_store_error():
    store = S3BlobStore("bucket", client=FakeS3Client(fail_put=True))

    with pytest.raises(StoreIOError) as excinfo:
        store.upload("a.txt", "text/plain", io.BytesIO(b"x"), item_prefix("abc"))

    assert excinfo.value.operation == "blob_upload"
