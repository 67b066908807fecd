"""Data structures shared by the S3 client operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List
from urllib.parse import quote, urlsplit, urlunsplit

URL_STYLES = ("path", "virtual")


@dataclass(frozen=True)
class BucketIdentity:
    """Describes where a bucket lives and how it is addressed."""

    endpoint: str
    name: str
    region: str = "us-east-1"
    url_style: str = "path"

    def __post_init__(self) -> None:
        if self.url_style not in URL_STYLES:
            raise ValueError(f"Unsupported url_style '{self.url_style}', expected one of {URL_STYLES}")
        parts = urlsplit(self.endpoint)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Endpoint must be an absolute http(s) URL: {self.endpoint!r}")

    def bucket_url(self) -> str:
        """Return the URL addressing the bucket itself."""
        return self._build_url("")

    def object_url(self, key: str) -> str:
        """Return the URL addressing an object inside the bucket."""
        return self._build_url(quote(key, safe="/~"))

    def _build_url(self, encoded_key: str) -> str:
        parts = urlsplit(self.endpoint)
        base_path = parts.path.rstrip("/")
        if self.url_style == "path":
            netloc = parts.netloc
            path = f"{base_path}/{self.name}"
            if encoded_key:
                path = f"{path}/{encoded_key}"
        else:
            netloc = f"{self.name}.{parts.netloc}"
            path = f"{base_path}/{encoded_key}"
        return urlunsplit((parts.scheme, netloc, path, "", ""))

    def describe(self) -> str:
        return f"s3://{self.name} ({self.endpoint})"


@dataclass(frozen=True)
class Credentials:
    """Access key pair used to sign requests. The secret never shows up in repr."""

    access_key: str
    secret_key: str = field(repr=False)


class UploadState(Enum):
    """Lifecycle of a multipart upload within a single put call."""

    IDLE = "idle"
    INITIATED = "initiated"
    PART_UPLOADED = "part_uploaded"
    COMPLETED = "completed"


@dataclass(frozen=True)
class CompletedPart:
    part_number: int
    etag: str


@dataclass
class MultipartUpload:
    """Server-side multipart session for one object."""

    key: str
    upload_id: str = ""
    parts: List[CompletedPart] = field(default_factory=list)
    state: UploadState = UploadState.IDLE

    def mark_initiated(self, upload_id: str) -> None:
        self.upload_id = upload_id
        self.state = UploadState.INITIATED

    def add_part(self, part_number: int, etag: str) -> None:
        self.parts.append(CompletedPart(part_number=part_number, etag=etag))
        self.state = UploadState.PART_UPLOADED

    def mark_completed(self) -> None:
        self.state = UploadState.COMPLETED

    def next_part_number(self) -> int:
        return len(self.parts) + 1
