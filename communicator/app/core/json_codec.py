"""JSON wire encoding shared by both backends.

Payloads are encoded compactly, so `{"a": 1}` travels as the exact string
`{"a":1}`.
"""
from __future__ import annotations

import json
from typing import Any


def encode_payload(message: Any) -> str:
    return json.dumps(message, separators=(",", ":"))


def decode_payload(raw: str | bytes | None) -> Any:
    """Decode a wire payload; an absent or empty payload decodes to None."""
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode()
    if not raw.strip():
        return None
    return json.loads(raw)
