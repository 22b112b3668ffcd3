# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""AWS Signature Version 4 request signing for object-storage GET requests.

Produces the ``Authorization`` and ``X-Amz-Date`` header values for a request
against an S3-compatible HTTP endpoint without a vendor SDK. Everything here is
a pure function of its inputs: no network access, no environment lookups.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional
from urllib.parse import quote

ALGORITHM = "AWS4-HMAC-SHA256"
KEY_PREFIX = "AWS4"
SCOPE_TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_FORMAT = "%Y%m%d"


class InvalidConfiguration(ValueError):
    """A required signing input is missing or empty."""


@dataclass(frozen=True)
class SigningContext:
    """Inputs for a single signed request. Build a new one for every call."""

    access_key_id: str
    secret_key: str
    host: str
    region: str
    service_name: str
    timestamp: datetime
    method: str = "GET"
    canonical_path: str = "/"
    canonical_query_string: str = ""
    extra_signed_headers: Mapping[str, str] = field(default_factory=dict)
    payload_hash: str = UNSIGNED_PAYLOAD

    def __repr__(self) -> str:
        # Keep the secret out of tracebacks and log lines.
        return (
            f"SigningContext(method={self.method!r}, host={self.host!r}, "
            f"path={self.canonical_path!r}, region={self.region!r}, "
            f"service={self.service_name!r})"
        )


@dataclass(frozen=True)
class SignedHeaders:
    authorization: str
    amz_date: str
    credential_scope: str
    signed_headers: str
    signature: str
    headers: dict[str, str]


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def format_timestamp(timestamp: datetime) -> tuple[str, str]:
    """
    Returns the (amz_date, date_stamp) pair for one instant.

    Both strings come from the same UTC-converted value, so the credential
    scope always matches the declared request time. Naive datetimes are
    taken to be UTC already.
    """
    if timestamp.tzinfo is None:
        instant = timestamp.replace(tzinfo=timezone.utc)
    else:
        instant = timestamp.astimezone(timezone.utc)
    return instant.strftime(AMZ_DATE_FORMAT), instant.strftime(DATE_STAMP_FORMAT)


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """RFC 3986 encoding as SigV4 expects it (unreserved chars kept, hex upper)."""
    safe = "-_.~" if encode_slash else "-_.~/"
    return quote(value, safe=safe)


def canonical_query_string(params: Optional[Mapping[str, str]]) -> str:
    """Builds a canonical query string from unencoded parameters."""
    if not params:
        return ""
    pairs = sorted(
        (uri_encode(str(key)), uri_encode(str(value)))
        for key, value in params.items()
    )
    return "&".join(f"{key}={value}" for key, value in pairs)


def derive_signing_key(
    secret_key: str, date_stamp: str, region: str, service_name: str
) -> bytes:
    """
    Scopes the long-lived secret down to one day, region and service.

    Each HMAC output becomes the key of the next stage, so the order of
    the stages is part of the result.
    """
    k_date = hmac_sha256((KEY_PREFIX + secret_key).encode("utf-8"), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service_name)
    return hmac_sha256(k_service, SCOPE_TERMINATOR)


def _require(context: SigningContext) -> None:
    missing = [
        name
        for name in (
            "secret_key",
            "access_key_id",
            "host",
            "region",
            "service_name",
        )
        if not getattr(context, name)
    ]
    if missing:
        raise InvalidConfiguration(
            f"Missing signing configuration: {', '.join(missing)}"
        )


def _canonical_headers(
    host: str, amz_date: str, extra: Mapping[str, str]
) -> tuple[str, str]:
    headers = {
        name.strip().lower(): " ".join(str(value).split())
        for name, value in extra.items()
    }
    headers["host"] = host
    headers["x-amz-date"] = amz_date
    names = sorted(headers)
    block = "".join(f"{name}:{headers[name]}\n" for name in names)
    return block, ";".join(names)


def build_canonical_request(
    context: SigningContext, amz_date: str
) -> tuple[str, str]:
    """Returns (canonical_request, signed_headers)."""
    header_block, signed_headers = _canonical_headers(
        context.host, amz_date, context.extra_signed_headers
    )
    canonical_request = "\n".join(
        [
            context.method.upper(),
            context.canonical_path or "/",
            context.canonical_query_string or "",
            header_block,
            signed_headers,
            context.payload_hash,
        ]
    )
    return canonical_request, signed_headers


def credential_scope(date_stamp: str, region: str, service_name: str) -> str:
    return f"{date_stamp}/{region}/{service_name}/{SCOPE_TERMINATOR}"


def build_string_to_sign(
    canonical_request: str, amz_date: str, scope: str
) -> str:
    return "\n".join(
        [ALGORITHM, amz_date, scope, sha256_hex(canonical_request)]
    )


def sign(context: SigningContext) -> SignedHeaders:
    """
    Signs one request.

    Raises:
        InvalidConfiguration: if the secret, access key id, host, region or
            service name is empty.
    """
    _require(context)
    amz_date, date_stamp = format_timestamp(context.timestamp)

    canonical_request, signed_headers = build_canonical_request(context, amz_date)
    scope = credential_scope(date_stamp, context.region, context.service_name)
    string_to_sign = build_string_to_sign(canonical_request, amz_date, scope)

    signing_key = derive_signing_key(
        context.secret_key, date_stamp, context.region, context.service_name
    )
    signature = hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()

    authorization = (
        f"{ALGORITHM} Credential={context.access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )
    headers = {
        name: str(value) for name, value in context.extra_signed_headers.items()
    }
    headers.update(
        {
            "Host": context.host,
            "X-Amz-Date": amz_date,
            "Authorization": authorization,
        }
    )
    return SignedHeaders(
        authorization=authorization,
        amz_date=amz_date,
        credential_scope=scope,
        signed_headers=signed_headers,
        signature=signature,
        headers=headers,
    )


def sign_request(
    *,
    access_key_id: str,
    secret_key: str,
    method: str,
    host: str,
    canonical_path: str = "/",
    canonical_query_string: str = "",
    extra_signed_headers: Optional[Mapping[str, str]] = None,
    timestamp: Optional[datetime] = None,
    region: str,
    service_name: str,
    payload_hash: str = UNSIGNED_PAYLOAD,
) -> SignedHeaders:
    """Keyword-argument form of :func:`sign`. Captures ``now`` if no timestamp."""
    context = SigningContext(
        access_key_id=access_key_id,
        secret_key=secret_key,
        host=host,
        region=region,
        service_name=service_name,
        timestamp=timestamp or datetime.now(timezone.utc),
        method=method,
        canonical_path=canonical_path,
        canonical_query_string=canonical_query_string,
        extra_signed_headers=dict(extra_signed_headers or {}),
        payload_hash=payload_hash,
    )
    return sign(context)
