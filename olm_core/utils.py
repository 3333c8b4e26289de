"""
olm_core.utils
--------------
Lightweight helpers for unpadded base64, canonical JSON and timestamps.
Olm encodes every key and signature as standard base64 with the trailing
'=' padding stripped.
"""

from __future__ import annotations
import base64, binascii, json, time, hashlib
from typing import Any, Dict


def b64e(b: bytes) -> str:
    return base64.b64encode(bytes(b)).decode("ascii").rstrip("=")


def b64d(s: str) -> bytes:
    """Decode padded or unpadded base64. Raises ValueError on bad input."""
    if isinstance(s, (bytes, bytearray)):
        s = bytes(s).decode("ascii")
    s = s.strip()
    if len(s) % 4 == 1:
        raise ValueError("invalid base64 length")
    try:
        return base64.b64decode(s + "=" * (-len(s) % 4), validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64: {e}") from e


def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def canonical_json(obj: Dict[str, Any]) -> bytes:
    # Deterministic, minimal JSON
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False).encode("utf-8")


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def to_bytes(data: Any, what: str = "value") -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"{what} must be str or bytes, not {type(data).__name__}")


def zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0
