"""
olm_core.keys
-------------
Key records held by an Account and the public projections it exports.

The JSON shapes are protocol-fixed:
  identity keys:  {"curve25519": "<b64>", "ed25519": "<b64>"}
  one-time keys:  {"curve25519": {"<key id>": "<b64>", ...}}
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict
import json

from .constants import CURVE25519, ED25519
from .errors import DeserializationError
from .utils import b64d, b64e, canonical_json, sha256, zero


def key_id_to_text(key_id: int) -> str:
    # libolm publishes IDs as base64 of the 32-bit big-endian counter
    return b64e(key_id.to_bytes(4, "big"))


def _load_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise DeserializationError(message=f"{what}: {e}") from e


@dataclass
class OneTimeKey:
    key_id: int
    private: bytearray = field(repr=False)
    public: bytes
    published: bool = False

    @property
    def key_id_text(self) -> str:
        return key_id_to_text(self.key_id)

    @property
    def public_b64(self) -> str:
        return b64e(self.public)

    def to_pickle_dict(self) -> Dict[str, Any]:
        return {"id": self.key_id, "private": b64e(self.private), "published": self.published}

    def clear(self) -> None:
        zero(self.private)


@dataclass
class PublicKeys:
    """The shareable identity bundle of an Account."""
    curve25519: str
    ed25519: str

    def to_dict(self) -> Dict[str, str]:
        return {CURVE25519: self.curve25519, ED25519: self.ed25519}

    def to_json(self) -> str:
        return canonical_json(self.to_dict()).decode("utf-8")

    def fingerprint(self) -> str:
        """Truncated SHA-256 (32 hex chars) of the raw Ed25519 key."""
        return sha256(b64d(self.ed25519))[:32]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PublicKeys":
        if not isinstance(data, dict):
            raise DeserializationError(message="identity keys must be a JSON object")
        curve, ed = data.get(CURVE25519), data.get(ED25519)
        if not isinstance(curve, str) or not isinstance(ed, str):
            raise DeserializationError(message="identity keys need string curve25519 and ed25519 fields")
        return cls(curve25519=curve, ed25519=ed)

    @classmethod
    def from_json(cls, text: str) -> "PublicKeys":
        return cls.from_dict(_load_json(text, "identity keys"))


@dataclass
class OneTimeKeys:
    """
    Public prekey bundle, key ID text -> public key. Also used for the
    fallback key projection, which has the same shape.
    """
    curve25519: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.curve25519)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {CURVE25519: dict(self.curve25519)}

    def to_json(self) -> str:
        return canonical_json(self.to_dict()).decode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OneTimeKeys":
        if not isinstance(data, dict):
            raise DeserializationError(message="one-time keys must be a JSON object")
        keys = data.get(CURVE25519, {})
        if not isinstance(keys, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in keys.items()
        ):
            raise DeserializationError(message="curve25519 must map key IDs to key strings")
        return cls(curve25519=dict(keys))

    @classmethod
    def from_json(cls, text: str) -> "OneTimeKeys":
        return cls.from_dict(_load_json(text, "one-time keys"))
