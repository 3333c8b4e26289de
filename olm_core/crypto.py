"""
olm_core.crypto
---------------
The primitive engine behind an Account:

- Ed25519: key derivation from a 32-byte seed, signing, verification
- X25519: public key derivation for identity and one-time keys
- Ed25519 -> Curve25519 conversion (birational map, libsodium compatible)
- Pickle codec: HKDF-SHA256 + AES-GCM over the serialized account state

Engine calls never raise on crypto faults. Each returns an ``EngineResult``
and the caller checks it with ``unwrap()`` immediately after the call.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Type
import hashlib

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from . import errors
from .constants import (
    CURVE25519_KEY_LENGTH, ED25519_PUBLIC_KEY_LENGTH, ED25519_SEED_LENGTH, ED25519_SIGNATURE_LENGTH,
    PICKLE_HKDF_INFO, PICKLE_RANDOM_LENGTH,
    PICKLE_SALT_LENGTH, PICKLE_VERSION,
)
from .errors import CryptoEngineError, OlmError
from .utils import b64d, b64e


@dataclass(frozen=True)
class EngineResult:
    value: Any = None
    error: Optional[str] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self, error_cls: Type[OlmError] = CryptoEngineError) -> Any:
        if self.error is not None:
            raise error_cls(self.error, self.message)
        return self.value


def _ok(value: Any = None) -> EngineResult:
    return EngineResult(value=value)


def _fail(code: str, message: str) -> EngineResult:
    return EngineResult(error=code, message=message)


# --------- Ed25519 ----------
def ed25519_public_from_seed(seed: bytes) -> EngineResult:
    if len(seed) != ED25519_SEED_LENGTH:
        return _fail(errors.INVALID_KEY, "Ed25519 seed must be 32 bytes")
    sk = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(seed))
    return _ok(sk.public_key().public_bytes_raw())


def ed25519_sign(seed: bytes, data: bytes) -> EngineResult:
    if len(seed) != ED25519_SEED_LENGTH:
        return _fail(errors.INVALID_KEY, "Ed25519 seed must be 32 bytes")
    try:
        sig = ed25519.Ed25519PrivateKey.from_private_bytes(bytes(seed)).sign(data)
    except (ValueError, TypeError) as e:
        return _fail(errors.SIGN_FAILED, str(e))
    return _ok(sig)


def ed25519_verify(pub_b64: str, message: bytes, sig_b64: str) -> bool:
    try:
        pub = b64d(pub_b64)
        sig = b64d(sig_b64)
        if len(sig) != ED25519_SIGNATURE_LENGTH:
            return False
        ed25519.Ed25519PublicKey.from_public_bytes(pub).verify(sig, bytes(message))
        return True
    except (InvalidSignature, ValueError):
        return False


# --------- X25519 ----------
def curve25519_public_from_private(priv: bytes) -> EngineResult:
    if len(priv) != CURVE25519_KEY_LENGTH:
        return _fail(errors.INVALID_KEY, "Curve25519 private key must be 32 bytes")
    sk = x25519.X25519PrivateKey.from_private_bytes(bytes(priv))
    return _ok(sk.public_key().public_bytes_raw())


# --------- Ed25519 -> Curve25519 ----------
_P = 2**255 - 19


def ed25519_sk_to_curve25519(seed: bytes) -> EngineResult:
    """
    X25519 private scalar for an Ed25519 seed: the clamped first half of
    SHA-512(seed), exactly the scalar Ed25519 itself signs with.
    """
    if len(seed) != ED25519_SEED_LENGTH:
        return _fail(errors.INVALID_KEY, "Ed25519 seed must be 32 bytes")
    h = bytearray(hashlib.sha512(bytes(seed)).digest()[:32])
    h[0] &= 248
    h[31] &= 127
    h[31] |= 64
    return _ok(bytes(h))


def ed25519_pk_to_curve25519(pub: bytes) -> EngineResult:
    """Montgomery u = (1 + y) / (1 - y) mod p for the Edwards point y."""
    if len(pub) != ED25519_PUBLIC_KEY_LENGTH:
        return _fail(errors.INVALID_KEY, "Ed25519 public key must be 32 bytes")
    y = int.from_bytes(bytes(pub), "little") & ((1 << 255) - 1)
    if y >= _P or y == 1:
        return _fail(errors.INVALID_KEY, "Ed25519 public key is not a valid point")
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(bytes(pub))
    except ValueError as e:
        return _fail(errors.INVALID_KEY, str(e))
    u = (1 + y) * pow(1 - y, _P - 2, _P) % _P
    return _ok(u.to_bytes(32, "little"))


# --------- Pickle codec ----------
def _pickle_key(key: bytes, salt: bytes) -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=salt, info=PICKLE_HKDF_INFO)
    return hkdf.derive(key)


def pickle_encrypt(key: bytes, plaintext: bytes, random: bytes) -> EngineResult:
    """
    Encrypt ``plaintext`` under ``key``. ``random`` supplies the salt and
    nonce (PICKLE_RANDOM_LENGTH bytes). Output is unpadded base64 text of
    version || salt || nonce || ciphertext.
    """
    if len(random) != PICKLE_RANDOM_LENGTH:
        return _fail(errors.NOT_ENOUGH_RANDOM, f"pickle needs {PICKLE_RANDOM_LENGTH} random bytes")
    salt = bytes(random[:PICKLE_SALT_LENGTH])
    nonce = bytes(random[PICKLE_SALT_LENGTH:])
    header = bytes([PICKLE_VERSION])
    ct = AESGCM(_pickle_key(key, salt)).encrypt(nonce, plaintext, header)
    return _ok(b64e(header + salt + nonce + ct))


def pickle_decrypt(key: bytes, pickle: str) -> EngineResult:
    try:
        raw = b64d(pickle)
    except (ValueError, UnicodeError) as e:
        return _fail(errors.INVALID_BASE64, str(e))
    if not raw:
        return _fail(errors.CORRUPTED_PICKLE, "empty pickle")
    if raw[0] != PICKLE_VERSION:
        return _fail(errors.UNKNOWN_PICKLE_VERSION, f"pickle version {raw[0]}")
    # 16 byte GCM tag
    if len(raw) < 1 + PICKLE_RANDOM_LENGTH + 16:
        return _fail(errors.CORRUPTED_PICKLE, "pickle is truncated")

    header = raw[:1]
    salt = raw[1:1 + PICKLE_SALT_LENGTH]
    nonce = raw[1 + PICKLE_SALT_LENGTH:1 + PICKLE_RANDOM_LENGTH]
    ct = raw[1 + PICKLE_RANDOM_LENGTH:]
    try:
        return _ok(AESGCM(_pickle_key(key, salt)).decrypt(nonce, ct, header))
    except InvalidTag:
        return _fail(errors.BAD_ACCOUNT_KEY, "pickle authentication failed")
