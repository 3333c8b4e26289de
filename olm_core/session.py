# olm_core/session.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from .constants import CURVE25519_KEY_LENGTH
from .errors import DeserializationError
from .utils import b64d


@runtime_checkable
class SessionLike(Protocol):
    """
    What an Account needs from an established inbound session: the public
    half of the one-time key it consumed (raw bytes or base64 text), or
    None when the session was built on a fallback key / without one.
    """
    one_time_key: Optional[Union[bytes, str]]


@dataclass(frozen=True)
class HandshakeRecord:
    """
    The key material an inbound session took from a pre-key message.
    Sessions that keep this record satisfy ``SessionLike``.
    """
    identity_key: bytes
    base_key: bytes
    one_time_key: Optional[bytes] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HandshakeRecord":
        """Build from the base64 fields of a pre-key message header."""
        try:
            otk = data.get("one_time_key")
            return cls(
                identity_key=b64d(data["identity_key"]),
                base_key=b64d(data["base_key"]),
                one_time_key=b64d(otk) if otk else None,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise DeserializationError(message=f"bad handshake record: {e}") from e


def session_one_time_key(session: SessionLike) -> Optional[bytes]:
    """Normalize ``session.one_time_key`` to raw bytes."""
    value = getattr(session, "one_time_key", None)
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = b64d(value)
        except ValueError as e:
            raise DeserializationError(message=f"session one-time key: {e}") from e
    value = bytes(value)
    if len(value) != CURVE25519_KEY_LENGTH:
        raise DeserializationError(message="session one-time key must be 32 bytes")
    return value
