"""
Object-storage listing over the S3 HTTP API, plus an in-memory test double.

Requests are signed with ``shared.signing`` rather than an SDK; the XML body
is reduced to image objects by ``shared.s3_listing``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

import requests

from backend.config import StorageConfig
from shared.s3_listing import StorageObject, parse_listing
from shared.signing import (
    InvalidConfiguration,
    SigningContext,
    UNSIGNED_PAYLOAD,
    canonical_query_string,
    sign,
)
from shared.types import SyncSource

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
MAX_PAGES = 100
_LOGGED_BODY_LIMIT = 500


class StorageRequestError(Exception):
    """The storage service rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def list_objects(
        self, source: SyncSource = SyncSource.BUCKET
    ) -> list[StorageObject]:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    objects: dict = field(default_factory=dict)
    error: Optional[Exception] = None
    calls: list = field(default_factory=list)

    def list_objects(
        self, source: SyncSource = SyncSource.BUCKET
    ) -> list[StorageObject]:
        self.calls.append(source)
        if self.error is not None:
            raise self.error
        return list(self.objects.get(source, []))


@dataclass
class UnconfiguredStorageClient:
    """Stands in when credentials are missing; every call reports why."""

    error: InvalidConfiguration

    def list_objects(
        self, source: SyncSource = SyncSource.BUCKET
    ) -> list[StorageObject]:
        raise self.error


class S3ListingClient:
    """
    Lists image objects in a bucket or access point with SigV4-signed GETs.
    """

    def __init__(
        self,
        config: StorageConfig,
        session: Optional[requests.Session] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _host_for(self, source: SyncSource) -> str:
        if source == SyncSource.ACCESS_POINT:
            host = self.config.access_point_host
            if not host:
                raise InvalidConfiguration(
                    "Missing storage configuration: AWS_S3_ACCESS_POINT_ALIAS"
                )
            return host
        return self.config.bucket_host

    def _get_page(self, host: str, continuation_token: Optional[str]) -> str:
        params = {"list-type": "2"}
        if continuation_token:
            params["continuation-token"] = continuation_token
        query = canonical_query_string(params)

        # Fresh context per request: a new timestamp every time.
        signed = sign(
            SigningContext(
                access_key_id=self.config.access_key_id,
                secret_key=self.config.secret_access_key,
                host=host,
                region=self.config.region,
                service_name=self.config.service_name,
                timestamp=self._clock(),
                canonical_path="/",
                canonical_query_string=query,
                extra_signed_headers={"x-amz-content-sha256": UNSIGNED_PAYLOAD},
            )
        )
        url = f"https://{host}/?{query}"
        try:
            response = self.session.get(
                url, headers=signed.headers, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.error("Storage request to %s failed: %s", host, e)
            raise StorageRequestError(f"Storage request failed: {e}") from e

        if not response.ok:
            body = response.text or ""
            logger.error(
                "Storage listing rejected by %s: status=%s body=%s",
                host,
                response.status_code,
                body[:_LOGGED_BODY_LIMIT],
            )
            raise StorageRequestError(
                f"Storage API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
                body=body,
            )
        return response.text or ""

    def list_objects(
        self, source: SyncSource = SyncSource.BUCKET
    ) -> list[StorageObject]:
        host = self._host_for(source)
        objects: list[StorageObject] = []
        token: Optional[str] = None
        for _ in range(MAX_PAGES):
            body = self._get_page(host, token)
            page = parse_listing(body)
            if not page.objects and "<ListBucketResult" not in body:
                # Unreadable bodies count as an empty listing.
                logger.warning(
                    "Storage listing from %s was not a ListBucketResult", host
                )
            objects.extend(page.objects)
            token = page.next_continuation_token
            if not token:
                break
        else:
            logger.warning("Stopped listing %s after %d pages", host, MAX_PAGES)
        logger.info("Listed %d image objects from %s", len(objects), source.value)
        return objects
