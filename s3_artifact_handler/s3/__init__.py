"""S3 integration helpers."""

from .client import DEFAULT_PART_SIZE, MIN_PART_SIZE, S3Client
from .models import BucketIdentity, CompletedPart, Credentials, MultipartUpload, UploadState
from .signer import RequestSigner

__all__ = [
    "S3Client",
    "DEFAULT_PART_SIZE",
    "MIN_PART_SIZE",
    "BucketIdentity",
    "CompletedPart",
    "Credentials",
    "MultipartUpload",
    "UploadState",
    "RequestSigner",
]
