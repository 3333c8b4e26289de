"""
olm_core
========
Account-level identity and key lifecycle for an Olm-style end-to-end
encrypted messaging protocol.

Provides:
- Account: Ed25519 signing identity, Curve25519 identity key, one-time
  and fallback key supply, signing, passphrase-keyed pickling
- Public key projections in the protocol's JSON shapes
- Ed25519/X25519 primitives and Ed25519 -> Curve25519 conversion
- Pluggable pickle storage (memory default, SQLite)
"""

from .account import Account
from .crypto import ed25519_pk_to_curve25519, ed25519_sk_to_curve25519, ed25519_verify
from .errors import (
    OlmError, RandomnessError, CryptoEngineError, PickleError,
    KeyNotFoundError, DeserializationError,
)
from .keys import OneTimeKey, OneTimeKeys, PublicKeys
from .session import HandshakeRecord, SessionLike

__all__ = [
    "Account",
    "PublicKeys",
    "OneTimeKeys",
    "OneTimeKey",
    "SessionLike",
    "HandshakeRecord",
    "ed25519_verify",
    "ed25519_pk_to_curve25519",
    "ed25519_sk_to_curve25519",
    "OlmError",
    "RandomnessError",
    "CryptoEngineError",
    "PickleError",
    "KeyNotFoundError",
    "DeserializationError",
]
