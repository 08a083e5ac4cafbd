# src/feeds/request_signer.py

"""AWS Signature Version 4 request signing.

The signature binds the secret key to the exact method, path, headers
and body being sent:

1. canonical request  -> method, path, query, headers, signed names, body hash
2. string to sign     -> algorithm, timestamp, credential scope, request hash
3. signing key        -> HMAC chain over date, region, service, ``aws4_request``
4. signature          -> HMAC(signing key, string to sign), hex encoded

The clock is injectable so that a fixed timestamp yields a byte-identical
``Authorization`` header.
"""

import hashlib
import hmac
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from urllib.parse import quote

from src.models.errors import ConfigError

ALGORITHM = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR = "aws4_request"
DEFAULT_CONTENT_TYPE = "application/json; charset=UTF-8"

logger = logging.getLogger("feedrank.signer")


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def derive_signing_key(
    secret_key: str, datestamp: str, region: str, service: str
) -> bytes:
    """Run the HMAC chain that scopes the secret to date/region/service."""
    k_date = _hmac(f"AWS4{secret_key}".encode("utf-8"), datestamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, SCOPE_TERMINATOR)


def canonical_query_string(query: dict[str, str] | None) -> str:
    """Encode query parameters sorted by name (empty for POST calls)."""
    if not query:
        return ""
    return "&".join(
        f"{quote(str(k), safe='-_.~')}={quote(str(v), safe='-_.~')}"
        for k, v in sorted(query.items())
    )


def canonical_headers(headers: dict[str, str]) -> tuple[str, str]:
    """Return the canonical header block and the signed header list.

    Names are lower-cased and sorted; values are trimmed with inner
    whitespace runs collapsed.  The block keeps its trailing newline.
    """
    normalized = {
        name.strip().lower(): " ".join(str(value).split())
        for name, value in headers.items()
    }
    names = sorted(normalized)
    block = "".join(f"{name}:{normalized[name]}\n" for name in names)
    return block, ";".join(names)


def build_canonical_request(
    method: str,
    path: str,
    headers: dict[str, str],
    body: bytes,
    query: dict[str, str] | None = None,
) -> tuple[str, str]:
    """Assemble the canonical request; returns ``(request, signed_names)``."""
    header_block, signed_names = canonical_headers(headers)
    canonical = "\n".join(
        [
            method.upper(),
            quote(path or "/", safe="/-_.~"),
            canonical_query_string(query),
            header_block,
            signed_names,
            _sha256_hex(body),
        ]
    )
    return canonical, signed_names


class RequestSigner:
    """Sign requests for one access key, region and service."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str,
        service: str,
        host: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.service = service
        self.host = host
        self._clock = clock or _utc_now

    def _require_config(self) -> None:
        missing = [
            name
            for name in ("access_key", "secret_key", "region", "service", "host")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                self.service or "signer",
                f"Missing signing configuration: {', '.join(missing)}",
            )

    def sign(
        self,
        headers: dict[str, str],
        body: str | bytes,
        method: str = "POST",
        path: str = "/",
        query: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Return a signed copy of *headers*.

        ``host``, ``content-type`` (when missing and there is a body),
        ``x-amz-date`` and ``Authorization`` are added; the caller's dict
        is left untouched.
        """
        self._require_config()
        payload = body.encode("utf-8") if isinstance(body, str) else body

        now = self._clock().astimezone(timezone.utc)
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        datestamp = amz_date[:8]

        signed: dict[str, str] = {
            name.lower(): value for name, value in headers.items()
        }
        signed.setdefault("host", self.host)
        if payload:
            # Only a request with a body describes its media type
            signed.setdefault("content-type", DEFAULT_CONTENT_TYPE)
        signed["x-amz-date"] = amz_date

        canonical, signed_names = build_canonical_request(
            method, path, signed, payload, query
        )
        scope = f"{datestamp}/{self.region}/{self.service}/{SCOPE_TERMINATOR}"
        string_to_sign = "\n".join(
            [
                ALGORITHM,
                amz_date,
                scope,
                _sha256_hex(canonical.encode("utf-8")),
            ]
        )
        key = derive_signing_key(
            self.secret_key, datestamp, self.region, self.service
        )
        signature = hmac.new(
            key, string_to_sign.encode("utf-8"), hashlib.sha256
        ).hexdigest()

        signed["Authorization"] = (
            f"{ALGORITHM} Credential={self.access_key}/{scope}, "
            f"SignedHeaders={signed_names}, Signature={signature}"
        )
        logger.debug(
            "Signed %s %s for %s (scope=%s, headers=%s)",
            method,
            path,
            self.service,
            scope,
            signed_names,
        )
        return signed
