"""S3-compatible object store client driven by presigned URLs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union
from xml.etree import ElementTree as ET

import requests

from ..exceptions import FilesystemError, StoreError
from .models import BucketIdentity, CompletedPart, Credentials, MultipartUpload
from .signer import DEFAULT_SIGNATURE_TIMEOUT, RequestSigner

LOGGER = logging.getLogger(__name__)

MIN_PART_SIZE = 5 * 1024 * 1024
DEFAULT_PART_SIZE = 64 * 1024 * 1024
DOWNLOAD_CHUNK_SIZE = 1024 * 1024
NO_CACHE = "no-cache, no-store"
S3_XMLNS = "http://s3.amazonaws.com/doc/2006-03-01/"

PathLike = Union[str, Path]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find_text(body: Union[str, bytes], name: str) -> Optional[str]:
    """Return the text of the first element called ``name``, ignoring namespaces."""
    if not body:
        return None
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return None
    for element in root.iter():
        if _local_name(element.tag) == name:
            return (element.text or "").strip()
    return None


def _is_error_document(body: Union[str, bytes]) -> bool:
    if not body:
        return False
    try:
        root = ET.fromstring(body)
    except ET.ParseError:
        return False
    return _local_name(root.tag) == "Error"


def _is_success(response) -> bool:
    return 200 <= response.status_code < 300


def _complete_body(parts: Iterable[CompletedPart]) -> bytes:
    root = ET.Element("CompleteMultipartUpload", xmlns=S3_XMLNS)
    for part in parts:
        element = ET.SubElement(root, "Part")
        ET.SubElement(element, "PartNumber").text = str(part.part_number)
        ET.SubElement(element, "ETag").text = part.etag
    return ET.tostring(root, encoding="utf-8")


def _create_bucket_body(region: str) -> bytes:
    root = ET.Element("CreateBucketConfiguration", xmlns=S3_XMLNS)
    ET.SubElement(root, "LocationConstraint").text = region
    return ET.tostring(root, encoding="utf-8")


class S3Client:
    """Client session bound to a single bucket.

    The session is read-only after construction and meant for sequential use.
    All operations talk to the S3 REST API through URLs signed right before
    each request; nothing is retried.
    """

    def __init__(
        self,
        bucket: BucketIdentity,
        credentials: Credentials,
        *,
        session: Optional[requests.Session] = None,
        part_size: int = DEFAULT_PART_SIZE,
        signature_timeout: int = DEFAULT_SIGNATURE_TIMEOUT,
        request_timeout: Optional[float] = None,
    ) -> None:
        if part_size <= 0:
            raise ValueError("part_size must be positive.")
        self.bucket = bucket
        self.credentials = credentials
        self.session = session if session is not None else requests.Session()
        self.part_size = int(part_size)
        self.request_timeout = request_timeout
        self.signer = RequestSigner(credentials, bucket.region, expires=signature_timeout)

    def ensure_bucket(self) -> None:
        """Create the bucket unless a HEAD probe says it already exists."""
        url = self.signer.presign("HEAD", self.bucket.bucket_url())
        response = self._send("HEAD", url)
        if response.status_code < 400:
            LOGGER.debug("Bucket %s exists", self.bucket.describe())
            return

        LOGGER.info("Bucket %s not found (status %s), creating it", self.bucket.name, response.status_code)
        body = None
        if self.bucket.region and self.bucket.region != "us-east-1":
            body = _create_bucket_body(self.bucket.region)
        url = self.signer.presign("PUT", self.bucket.bucket_url())
        response = self._send("PUT", url, data=body)
        if not _is_success(response):
            raise StoreError(
                f"Bucket creation failed for {self.bucket.describe()}: {self._describe_failure(response)}",
                status_code=response.status_code,
            )

    def put(self, key: str, local_file: PathLike) -> MultipartUpload:
        """Upload ``local_file`` to ``key`` using a multipart upload."""
        path = Path(local_file)
        try:
            handle = path.open("rb")
        except OSError as exc:
            raise FilesystemError(f"Unable to open {path} for upload: {exc}") from exc

        upload = MultipartUpload(key=key)
        with handle:
            self._initiate(upload)
            self._upload_parts(upload, handle)
            self._complete(upload)
        LOGGER.debug("Uploaded %s to %s/%s in %s part(s)", path, self.bucket.name, key, len(upload.parts))
        return upload

    def get(self, key: str, local_path: PathLike) -> Path:
        """Stream the object at ``key`` into ``local_path``."""
        destination = Path(local_path)
        url = self.signer.presign(
            "GET",
            self.bucket.object_url(key),
            {"response-cache-control": NO_CACHE},
        )
        response = self._send("GET", url, stream=True)
        try:
            if not _is_success(response):
                raise StoreError(
                    f"Unable to download {key} from {self.bucket.describe()}: {self._describe_failure(response)}",
                    status_code=response.status_code,
                )
            self._stream_to_file(response, destination, key)
        finally:
            response.close()
        LOGGER.debug("Downloaded %s/%s to %s", self.bucket.name, key, destination)
        return destination

    def delete(self, key: str) -> None:
        """Remove the object at ``key``."""
        url = self.signer.presign("DELETE", self.bucket.object_url(key))
        response = self._send("DELETE", url)
        if not _is_success(response):
            raise StoreError(
                f"Unable to delete {key} from {self.bucket.describe()}: {self._describe_failure(response)}",
                status_code=response.status_code,
            )
        LOGGER.debug("Deleted %s/%s", self.bucket.name, key)

    def _initiate(self, upload: MultipartUpload) -> None:
        url = self.signer.presign("POST", self.bucket.object_url(upload.key), {"uploads": ""})
        response = self._send("POST", url)
        if not _is_success(response):
            raise StoreError(
                f"Unable to initiate multipart upload for {upload.key}: {self._describe_failure(response)}",
                status_code=response.status_code,
            )
        upload_id = _find_text(response.content, "UploadId")
        if not upload_id:
            raise StoreError(
                f"Multipart upload response for {upload.key} did not contain an UploadId",
                status_code=response.status_code,
            )
        upload.mark_initiated(upload_id)
        LOGGER.debug("Multipart upload created - upload id: %s", upload_id)

    def _upload_parts(self, upload: MultipartUpload, handle: BinaryIO) -> None:
        while True:
            try:
                chunk = handle.read(self.part_size)
            except OSError as exc:
                raise FilesystemError(f"Unable to read part {upload.next_part_number()} for {upload.key}: {exc}") from exc
            # An empty file still needs one (empty) part before completion.
            if not chunk and upload.parts:
                return
            self._upload_part(upload, chunk)
            if len(chunk) < self.part_size:
                return

    def _upload_part(self, upload: MultipartUpload, chunk: bytes) -> None:
        part_number = upload.next_part_number()
        url = self.signer.presign(
            "PUT",
            self.bucket.object_url(upload.key),
            {"partNumber": str(part_number), "uploadId": upload.upload_id},
        )
        response = self._send("PUT", url, data=chunk)
        if not _is_success(response):
            raise StoreError(
                f"Upload of part {part_number} for {upload.key} failed: {self._describe_failure(response)}",
                status_code=response.status_code,
            )
        etag = response.headers.get("ETag")
        if not etag:
            raise StoreError(
                f"Upload of part {part_number} for {upload.key} returned no ETag header",
                status_code=response.status_code,
            )
        upload.add_part(part_number, etag)
        LOGGER.debug("Part %s uploaded (%s bytes) - etag: %s", part_number, len(chunk), etag)

    def _complete(self, upload: MultipartUpload) -> None:
        url = self.signer.presign(
            "POST",
            self.bucket.object_url(upload.key),
            {"uploadId": upload.upload_id},
        )
        response = self._send("POST", url, data=_complete_body(upload.parts))
        # S3 may report a failed completion as a 200 carrying an <Error> document.
        if not _is_success(response) or _is_error_document(response.content):
            raise StoreError(
                f"Unable to complete multipart upload {upload.upload_id} for {upload.key}: "
                f"{self._describe_failure(response)}",
                status_code=response.status_code,
            )
        upload.mark_completed()

    def _stream_to_file(self, response, destination: Path, key: str) -> None:
        try:
            with destination.open("wb") as fh:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        except requests.RequestException as exc:
            destination.unlink(missing_ok=True)
            raise StoreError(f"Download of {key} was interrupted: {exc}") from exc
        except OSError as exc:
            destination.unlink(missing_ok=True)
            raise FilesystemError(f"Unable to write {destination}: {exc}") from exc

    def _send(self, method: str, url: str, *, data=None, stream: bool = False):
        try:
            return self.session.request(method, url, data=data, stream=stream, timeout=self.request_timeout)
        except requests.RequestException as exc:
            raise StoreError(f"{method} request to {self.bucket.endpoint} failed: {exc}") from exc

    @staticmethod
    def _describe_failure(response) -> str:
        detail = f"HTTP {response.status_code}"
        code = _find_text(response.content, "Code")
        message = _find_text(response.content, "Message")
        if code:
            detail = f"{detail} {code}"
        if message:
            detail = f"{detail}: {message}"
        return detail
