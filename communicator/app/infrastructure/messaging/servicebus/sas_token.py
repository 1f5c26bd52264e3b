"""Shared Access Signature tokens for the Service Bus REST API.

A token signs `<urlencoded resource uri>\\n<expiry>` with HMAC-SHA256 using the
shared access key. The provider keeps a single live token and regenerates it
synchronously on the first request at or after its expiry; there is no
background refresh.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Callable
from urllib.parse import quote_plus

from communicator.app.constants import TOKEN_TTL_SECONDS
from communicator.app.domain.models import AccessToken


def generate_sas_token(
    resource_uri: str,
    key_name: str,
    key: str,
    *,
    now: float,
    ttl_seconds: int = TOKEN_TTL_SECONDS,
) -> AccessToken:
    expiry = int(now) + ttl_seconds
    encoded_uri = quote_plus(resource_uri)
    string_to_sign = f"{encoded_uri}\n{expiry}"
    digest = hmac.new(key.encode(), string_to_sign.encode(), hashlib.sha256).digest()
    signature = base64.b64encode(digest).decode()
    token = (
        f"SharedAccessSignature sr={encoded_uri}"
        f"&sig={quote_plus(signature)}&se={expiry}&skn={key_name}"
    )
    return AccessToken(token=token, expires_at=expiry)


class SasTokenProvider:
    """Owns the broker's AccessToken; ensure_fresh() is called before every request."""

    def __init__(
        self,
        resource_uri: str,
        key_name: str,
        key: str,
        *,
        ttl_seconds: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._resource_uri = resource_uri
        self._key_name = key_name
        self._key = key
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._token: AccessToken | None = None

    @property
    def current(self) -> AccessToken | None:
        return self._token

    def generate(self) -> AccessToken:
        self._token = generate_sas_token(
            self._resource_uri,
            self._key_name,
            self._key,
            now=self._clock(),
            ttl_seconds=self._ttl_seconds,
        )
        return self._token

    def ensure_fresh(self) -> AccessToken:
        token = self._token
        if token is None or token.is_expired(self._clock()):
            return self.generate()
        return token
