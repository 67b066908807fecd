from __future__ import annotations

import logging

import pytest

from fake_s3 import FakeS3
from s3_artifact_handler.s3 import BucketIdentity, Credentials, S3Client
from s3_artifact_handler.utils.logger import NOISY_LOGGERS

ENDPOINT = "http://s3.test:9000"
BUCKET = "artifacts"


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    library_levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, library_level in library_levels.items():
        logging.getLogger(name).setLevel(library_level)


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def bucket():
    return BucketIdentity(endpoint=ENDPOINT, name=BUCKET)


@pytest.fixture
def credentials():
    return Credentials(access_key="test-access", secret_key="test-secret")


@pytest.fixture
def client(bucket, credentials, fake_s3):
    return S3Client(bucket, credentials, session=fake_s3, part_size=1024)


@pytest.fixture
def existing_bucket(fake_s3):
    fake_s3.buckets[BUCKET] = {}
    return fake_s3


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run the test from an empty working directory."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path
