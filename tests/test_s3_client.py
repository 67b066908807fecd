"""Tests for the presigned-URL S3 client."""

from unittest.mock import MagicMock

import pytest
import requests

from fake_s3 import FakeResponse
from s3_artifact_handler.exceptions import FilesystemError, StoreError
from s3_artifact_handler.s3 import BucketIdentity, S3Client, UploadState

BUCKET = "artifacts"


def _write(path, content: bytes):
    path.write_bytes(content)
    return path


class TestEnsureBucket:
    def test_creates_missing_bucket(self, client, fake_s3):
        client.ensure_bucket()

        assert fake_s3.operations() == ["head_bucket", "create_bucket"]
        assert BUCKET in fake_s3.buckets

    def test_is_idempotent(self, client, fake_s3):
        client.ensure_bucket()
        client.ensure_bucket()

        assert fake_s3.operations() == ["head_bucket", "create_bucket", "head_bucket"]

    def test_existing_bucket_only_probes(self, client, existing_bucket):
        client.ensure_bucket()

        assert existing_bucket.operations() == ["head_bucket"]

    def test_creation_failure_is_fatal(self, client, fake_s3):
        fake_s3.fail_on["create_bucket"] = 403

        with pytest.raises(StoreError, match="Bucket creation failed") as excinfo:
            client.ensure_bucket()

        assert excinfo.value.status_code == 403
        assert "InjectedFailure" in str(excinfo.value)

    def test_sends_location_constraint_outside_default_region(self, credentials, fake_s3):
        bucket = BucketIdentity(endpoint="http://s3.test:9000", name=BUCKET, region="eu-west-1")
        S3Client(bucket, credentials, session=fake_s3).ensure_bucket()

        create_call = fake_s3.calls[-1]
        assert create_call.operation == "create_bucket"
        assert b"<LocationConstraint>eu-west-1</LocationConstraint>" in create_call.body


class TestPut:
    def test_small_file_is_a_single_part(self, client, existing_bucket, tmp_path):
        source = _write(tmp_path / "archive.tar.gz", b"small payload")

        upload = client.put("test-1", source)

        assert upload.state is UploadState.COMPLETED
        assert [part.part_number for part in upload.parts] == [1]
        assert existing_bucket.operations() == ["initiate", "upload_part", "complete"]
        assert existing_bucket.buckets[BUCKET]["test-1"] == b"small payload"

    def test_large_file_is_split_into_parts(self, bucket, credentials, existing_bucket, tmp_path):
        client = S3Client(bucket, credentials, session=existing_bucket, part_size=4)
        source = _write(tmp_path / "archive.tar.gz", b"abcdefghij")

        upload = client.put("big", source)

        assert [part.part_number for part in upload.parts] == [1, 2, 3]
        assert [len(call.body) for call in existing_bucket.calls if call.operation == "upload_part"] == [4, 4, 2]
        assert existing_bucket.buckets[BUCKET]["big"] == b"abcdefghij"

    def test_exact_multiple_of_part_size(self, bucket, credentials, existing_bucket, tmp_path):
        client = S3Client(bucket, credentials, session=existing_bucket, part_size=4)
        source = _write(tmp_path / "archive.tar.gz", b"abcdefgh")

        upload = client.put("even", source)

        assert len(upload.parts) == 2
        assert existing_bucket.buckets[BUCKET]["even"] == b"abcdefgh"

    def test_empty_file_uploads_one_empty_part(self, client, existing_bucket, tmp_path):
        source = _write(tmp_path / "empty", b"")

        upload = client.put("empty", source)

        assert len(upload.parts) == 1
        assert existing_bucket.buckets[BUCKET]["empty"] == b""

    def test_initiate_failure_stops_upload(self, client, existing_bucket, tmp_path):
        existing_bucket.fail_on["initiate"] = 500
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="initiate multipart upload") as excinfo:
            client.put("key", source)

        assert excinfo.value.status_code == 500
        assert existing_bucket.operations() == ["initiate"]

    def test_missing_bucket_fails_initiate(self, client, fake_s3, tmp_path):
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="NoSuchBucket"):
            client.put("key", source)

    def test_missing_upload_id_is_a_protocol_error(self, client, tmp_path):
        session = MagicMock()
        session.request.return_value = FakeResponse(200, b"<InitiateMultipartUploadResult/>")
        client.session = session
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="UploadId"):
            client.put("key", source)

    def test_missing_etag_is_a_protocol_error(self, client, existing_bucket, tmp_path):
        existing_bucket.omit_etag = True
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="no ETag"):
            client.put("key", source)

        assert "complete" not in existing_bucket.operations()
        # The session is abandoned rather than aborted.
        assert [upload["completed"] for upload in existing_bucket.uploads.values()] == [False]

    def test_part_failure_is_fatal(self, client, existing_bucket, tmp_path):
        existing_bucket.fail_on["upload_part"] = 403
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError) as excinfo:
            client.put("key", source)

        assert excinfo.value.status_code == 403
        assert "key" not in existing_bucket.buckets[BUCKET]

    def test_complete_error_document_is_a_failure(self, client, existing_bucket, tmp_path):
        existing_bucket.complete_error_body = True
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="InternalError"):
            client.put("key", source)

    def test_complete_failure_is_fatal(self, client, existing_bucket, tmp_path):
        existing_bucket.fail_on["complete"] = 400
        source = _write(tmp_path / "archive.tar.gz", b"data")

        with pytest.raises(StoreError, match="complete multipart upload"):
            client.put("key", source)

    def test_missing_local_file(self, client, existing_bucket, tmp_path):
        with pytest.raises(FilesystemError):
            client.put("key", tmp_path / "missing.tar.gz")

        assert existing_bucket.calls == []


class TestGet:
    def test_streams_object_to_file(self, client, existing_bucket, tmp_path):
        existing_bucket.buckets[BUCKET]["obj"] = b"x" * 5000
        target = tmp_path / "download.tar.gz"

        client.get("obj", target)

        assert target.read_bytes() == b"x" * 5000

    def test_requests_cache_bypass(self, client, existing_bucket, tmp_path):
        existing_bucket.buckets[BUCKET]["obj"] = b"data"

        client.get("obj", tmp_path / "download.tar.gz")

        assert existing_bucket.calls[-1].params["response-cache-control"] == "no-cache, no-store"

    def test_missing_object_leaves_no_file(self, client, existing_bucket, tmp_path):
        target = tmp_path / "download.tar.gz"

        with pytest.raises(StoreError, match="NoSuchKey") as excinfo:
            client.get("missing", target)

        assert excinfo.value.status_code == 404
        assert not target.exists()

    def test_interrupted_stream_removes_partial_file(self, client, tmp_path):
        response = MagicMock(status_code=200)
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("connection reset")
        client.session = MagicMock()
        client.session.request.return_value = response
        target = tmp_path / "download.tar.gz"

        with pytest.raises(StoreError, match="interrupted"):
            client.get("obj", target)

        assert not target.exists()
        response.close.assert_called_once()


class TestDelete:
    def test_removes_object(self, client, existing_bucket):
        existing_bucket.buckets[BUCKET]["obj"] = b"data"

        client.delete("obj")

        assert "obj" not in existing_bucket.buckets[BUCKET]

    def test_failure_is_reported(self, client, existing_bucket):
        existing_bucket.fail_on["delete"] = 403

        with pytest.raises(StoreError) as excinfo:
            client.delete("obj")

        assert excinfo.value.status_code == 403


def test_transport_errors_become_store_errors(client):
    client.session = MagicMock()
    client.session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(StoreError, match="refused") as excinfo:
        client.ensure_bucket()

    assert isinstance(excinfo.value.__cause__, requests.exceptions.ConnectionError)


def test_expired_signature_surfaces_as_plain_403(client, fake_s3):
    fake_s3.fail_on["head_bucket"] = 403
    fake_s3.fail_on["create_bucket"] = 403

    with pytest.raises(StoreError) as excinfo:
        client.ensure_bucket()

    assert excinfo.value.status_code == 403
