"""Presigned URL generation for S3 REST actions."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from botocore.auth import S3SigV4QueryAuth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials as BotoCredentials

from .models import Credentials

LOGGER = logging.getLogger(__name__)

DEFAULT_SIGNATURE_TIMEOUT = 1


class RequestSigner:
    """Signs S3 requests with SigV4 query authentication.

    Every URL is only valid for ``expires`` seconds, so callers must sign
    immediately before sending.
    """

    def __init__(self, credentials: Credentials, region: str, expires: int = DEFAULT_SIGNATURE_TIMEOUT) -> None:
        if expires < 1:
            raise ValueError("Signature timeout must be at least one second.")
        self._credentials = BotoCredentials(credentials.access_key, credentials.secret_key)
        self.region = region
        self.expires = int(expires)

    def presign(self, method: str, url: str, params: Optional[Mapping[str, str]] = None) -> str:
        """Return ``url`` with operation ``params`` and the auth query string appended."""
        request = AWSRequest(method=method.upper(), url=url, params=dict(params or {}))
        auth = S3SigV4QueryAuth(self._credentials, "s3", self.region, expires=self.expires)
        auth.add_auth(request)
        LOGGER.debug("Signed %s %s (expires in %ss)", method.upper(), url, self.expires)
        return request.url
