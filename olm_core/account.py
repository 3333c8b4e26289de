"""
olm_core.account
----------------
An Olm account: the long-term identity (Ed25519 signing key + Curve25519
identity key) and the supply of one-time and fallback keys handed out for
session establishment.

Every engine call is followed by ``unwrap()`` so faults surface as typed
errors at the call site (see olm_core.errors).

An Account is not thread-safe. Callers that share one across threads must
serialize access themselves; distinct Accounts share no state.

Secret buffers are zeroed by ``clear()``, which also runs when an Account
is used as a context manager:

    with Account.create() as acc:
        acc.generate_one_time_keys(10)
        blob = acc.pickle(passphrase)
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import json

from cryptography.hazmat.primitives.asymmetric import ed25519

from . import crypto, errors
from .config import load_max_one_time_keys
from .constants import (
    CREATE_ACCOUNT_RANDOM_LENGTH, CURVE25519, ED25519, ED25519_SEED_LENGTH,
    MAX_KEY_ID, ONE_TIME_KEY_RANDOM_LENGTH, PICKLE_RANDOM_LENGTH, PICKLE_VERSION,
)
from .entropy import RandomSource, read_random
from .errors import CryptoEngineError, DeserializationError, KeyNotFoundError, PickleError
from .keys import OneTimeKey, OneTimeKeys, PublicKeys
from .logger import get_logger
from .session import SessionLike, session_one_time_key
from .utils import b64d, b64e, canonical_json, to_bytes, zero


log = get_logger("olm_core.account")


def _pickle_key(key: Any) -> bytes:
    key = to_bytes(key, "pickle key")
    if not key:
        raise ValueError("pickle key must not be empty")
    return key


class Account:

    def __init__(
        self,
        signing_seed: bytes,
        identity_private: bytes,
        *,
        max_one_time_keys: Optional[int] = None,
        random_source: Optional[RandomSource] = None,
    ):
        if max_one_time_keys is None:
            max_one_time_keys = load_max_one_time_keys()
        if max_one_time_keys < 1:
            raise ValueError("max_one_time_keys must be >= 1")

        self._signing_seed = bytearray(signing_seed)
        self._identity_private = bytearray(identity_private)
        self._signing_public: bytes = crypto.ed25519_public_from_seed(self._signing_seed).unwrap()
        self._identity_public: bytes = crypto.curve25519_public_from_private(self._identity_private).unwrap()

        self._one_time_keys: List[OneTimeKey] = []  # oldest first
        self._fallback_key: Optional[OneTimeKey] = None
        self._prev_fallback_key: Optional[OneTimeKey] = None
        self._next_key_id = 1
        self._max_one_time_keys = int(max_one_time_keys)
        self._random_source = random_source
        self._cleared = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        random_source: Optional[RandomSource] = None,
        max_one_time_keys: Optional[int] = None,
    ) -> "Account":
        """New account with fresh random identity keys."""
        rbuf = read_random(CREATE_ACCOUNT_RANDOM_LENGTH, random_source)
        try:
            acc = cls(
                rbuf[:ED25519_SEED_LENGTH],
                rbuf[ED25519_SEED_LENGTH:],
                max_one_time_keys=max_one_time_keys,
                random_source=random_source,
            )
        finally:
            zero(rbuf)
        log.info(f"[ACCOUNT] created ed25519={b64e(acc._signing_public)}")
        return acc

    @classmethod
    def from_signing_key(
        cls,
        private_key: ed25519.Ed25519PrivateKey | bytes,
        *,
        convert: bool = False,
        random_source: Optional[RandomSource] = None,
        max_one_time_keys: Optional[int] = None,
    ) -> "Account":
        """
        Deterministic account from an externally issued Ed25519 key.

        The Ed25519 identity is the supplied key. By default the seed is
        doubled to the create length, so the Curve25519 identity key is the
        raw seed used as an X25519 scalar: reproducible from the same seed,
        but an independent derivation with no provable link to the signing
        key. With ``convert=True`` the Curve25519 key is the standard
        Ed25519 -> Curve25519 conversion of the signing key instead, and
        ``crypto.ed25519_pk_to_curve25519`` of the Ed25519 identity key
        reproduces it.
        """
        if isinstance(private_key, ed25519.Ed25519PrivateKey):
            seed = bytearray(private_key.private_bytes_raw())
        else:
            seed = bytearray(to_bytes(private_key, "signing key"))
        if len(seed) != ED25519_SEED_LENGTH:
            zero(seed)
            raise CryptoEngineError(errors.INVALID_KEY, "Ed25519 seed must be 32 bytes")

        material = bytearray(seed)
        try:
            if convert:
                material += crypto.ed25519_sk_to_curve25519(seed).unwrap()
            else:
                material += seed
            acc = cls(
                material[:ED25519_SEED_LENGTH],
                material[ED25519_SEED_LENGTH:CREATE_ACCOUNT_RANDOM_LENGTH],
                max_one_time_keys=max_one_time_keys,
                random_source=random_source,
            )
        finally:
            zero(material)
            zero(seed)
        log.info(f"[ACCOUNT] derived from signing key ed25519={b64e(acc._signing_public)} convert={convert}")
        return acc

    @classmethod
    def from_pickle(
        cls,
        key: str | bytes,
        pickle: str | bytes,
        *,
        random_source: Optional[RandomSource] = None,
    ) -> "Account":
        """
        Restore an account from ``pickle()`` output. Any failure (wrong key,
        corrupt or truncated data, unknown version) raises PickleError and
        no Account is returned.
        """
        kbuf = _pickle_key(key)
        if isinstance(pickle, (bytes, bytearray)):
            try:
                pickle = bytes(pickle).decode("ascii")
            except UnicodeDecodeError as e:
                raise PickleError(errors.INVALID_BASE64, str(e)) from e

        res = crypto.pickle_decrypt(kbuf, pickle)
        if not res.ok:
            log.warning(f"[PICKLE] restore failed: {res.error}")
        plaintext = bytearray(res.unwrap(PickleError))
        try:
            state = json.loads(plaintext.decode("utf-8"))
            return cls._from_state(state, random_source)
        except (KeyError, TypeError, ValueError, CryptoEngineError) as e:
            log.error(f"[PICKLE] corrupted account state: {e}")
            raise PickleError(errors.CORRUPTED_PICKLE, f"bad account state: {e}") from e
        finally:
            zero(plaintext)

    @classmethod
    def _from_state(cls, state: Dict[str, Any], random_source: Optional[RandomSource]) -> "Account":
        if state["version"] != PICKLE_VERSION:
            raise PickleError(errors.UNKNOWN_PICKLE_VERSION, f"state version {state['version']}")

        acc = cls(
            b64d(state["signing_seed"]),
            b64d(state["identity_private"]),
            max_one_time_keys=int(state["max_one_time_keys"]),
            random_source=random_source,
        )
        try:
            acc._next_key_id = int(state["next_key_id"])
            acc._one_time_keys = [acc._key_from_state(k) for k in state["one_time_keys"]]
            if state.get("fallback_key"):
                acc._fallback_key = acc._key_from_state(state["fallback_key"])
            if state.get("prev_fallback_key"):
                acc._prev_fallback_key = acc._key_from_state(state["prev_fallback_key"])

            ids = [k.key_id for k in acc._all_keys()]
            if len(set(ids)) != len(ids) or any(i >= acc._next_key_id for i in ids):
                raise ValueError("inconsistent one-time key IDs")
        except Exception:
            acc.clear()
            raise
        return acc

    @staticmethod
    def _key_from_state(d: Dict[str, Any]) -> OneTimeKey:
        private = bytearray(b64d(d["private"]))
        public = crypto.curve25519_public_from_private(private).unwrap()
        return OneTimeKey(key_id=int(d["id"]), private=private, public=public, published=bool(d["published"]))

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------
    def clear(self) -> None:
        """Zero every secret buffer. The account is unusable afterwards."""
        if self._cleared:
            return
        zero(self._signing_seed)
        zero(self._identity_private)
        for k in self._all_keys():
            k.clear()
        self._one_time_keys = []
        self._fallback_key = None
        self._prev_fallback_key = None
        self._cleared = True
        log.debug("[ACCOUNT] cleared")

    def __enter__(self) -> "Account":
        return self

    def __exit__(self, *exc) -> None:
        self.clear()

    def __repr__(self) -> str:
        if self._cleared:
            return "Account(<cleared>)"
        return f"Account(ed25519={b64e(self._signing_public)!r}, one_time_keys={len(self._one_time_keys)})"

    def _check_live(self) -> None:
        if self._cleared:
            raise CryptoEngineError(errors.ACCOUNT_CLEARED, "account has been cleared")

    def _all_keys(self) -> List[OneTimeKey]:
        keys = list(self._one_time_keys)
        keys += [k for k in (self._fallback_key, self._prev_fallback_key) if k is not None]
        return keys

    def _new_keys(self, count: int) -> List[OneTimeKey]:
        if self._next_key_id + count - 1 > MAX_KEY_ID:
            raise CryptoEngineError(errors.KEY_ID_EXHAUSTED, "one-time key IDs exhausted")
        rbuf = read_random(count * ONE_TIME_KEY_RANDOM_LENGTH, self._random_source)
        keys = []
        try:
            for i in range(count):
                private = rbuf[i * ONE_TIME_KEY_RANDOM_LENGTH:(i + 1) * ONE_TIME_KEY_RANDOM_LENGTH]
                public = crypto.curve25519_public_from_private(private).unwrap()
                keys.append(OneTimeKey(key_id=self._next_key_id + i, private=private, public=public))
        except CryptoEngineError:
            for k in keys:
                k.clear()
            raise
        finally:
            zero(rbuf)
        self._next_key_id += count
        return keys

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def identity_keys_json(self) -> str:
        self._check_live()
        return canonical_json({
            CURVE25519: b64e(self._identity_public),
            ED25519: b64e(self._signing_public),
        }).decode("utf-8")

    def identity_keys(self) -> PublicKeys:
        return PublicKeys.from_json(self.identity_keys_json())

    def sign(self, message: str | bytes) -> str:
        """Ed25519 signature over the exact message bytes, unpadded base64."""
        self._check_live()
        data = to_bytes(message, "message")
        res = crypto.ed25519_sign(self._signing_seed, data)
        if not res.ok:
            log.error(f"[SIGN] engine fault: {res.error}")
        return b64e(res.unwrap())

    # ------------------------------------------------------------------
    # One-time keys
    # ------------------------------------------------------------------
    def max_one_time_keys(self) -> int:
        return self._max_one_time_keys

    def generate_one_time_keys(self, count: int) -> None:
        """
        Generate ``count`` new one-time keys. If the account then holds more
        than max_one_time_keys(), the oldest keys are discarded.
        """
        if count < 0:
            raise ValueError("count must be >= 0")
        self._check_live()
        if count == 0:
            return

        self._one_time_keys.extend(self._new_keys(count))
        evicted = len(self._one_time_keys) - self._max_one_time_keys
        if evicted > 0:
            for k in self._one_time_keys[:evicted]:
                k.clear()
            del self._one_time_keys[:evicted]
            log.info(f"[OTK] evicted {evicted} oldest one-time keys")
        log.info(f"[OTK] generated {count} one-time keys, holding {len(self._one_time_keys)}")

    def one_time_keys_json(self) -> str:
        self._check_live()
        keys = {k.key_id_text: k.public_b64 for k in self._one_time_keys if not k.published}
        return canonical_json({CURVE25519: keys}).decode("utf-8")

    def one_time_keys(self) -> OneTimeKeys:
        """Public halves of the unpublished one-time keys."""
        return OneTimeKeys.from_json(self.one_time_keys_json())

    def mark_keys_as_published(self) -> None:
        """
        Mark the held one-time keys and the current fallback key as
        published. Published keys drop out of one_time_keys() but stay
        usable by inbound sessions until removed.
        """
        self._check_live()
        count = 0
        for k in self._one_time_keys:
            if not k.published:
                k.published = True
                count += 1
        if self._fallback_key is not None:
            self._fallback_key.published = True
        log.info(f"[OTK] marked {count} one-time keys as published")

    def find_one_time_key(self, public: bytes | str) -> Optional[OneTimeKey]:
        """Held one-time or fallback key with the given public half."""
        self._check_live()
        if isinstance(public, str):
            public = b64d(public)
        for k in self._all_keys():
            if k.public == bytes(public):
                return k
        return None

    def remove_one_time_keys(self, session: SessionLike) -> None:
        """
        Drop the one-time key ``session`` consumed. Raises KeyNotFoundError
        if the account does not hold it (already removed, a session from
        another account, a fallback-key session, or a malformed session
        key); state is unchanged.
        """
        self._check_live()
        try:
            public = session_one_time_key(session)
        except DeserializationError as e:
            log.warning(f"[OTK] remove requested with a malformed session key: {e.message}")
            raise KeyNotFoundError(message=f"no matching one-time key: {e.message}") from e
        if public is not None:
            for i, k in enumerate(self._one_time_keys):
                if k.public == public:
                    del self._one_time_keys[i]
                    k.clear()
                    log.info(f"[OTK] removed one-time key id={k.key_id_text}")
                    return
        log.warning("[OTK] remove requested for a key this account does not hold")
        raise KeyNotFoundError(message="no matching one-time key")

    # ------------------------------------------------------------------
    # Fallback keys
    # ------------------------------------------------------------------
    def generate_fallback_key(self) -> None:
        """New current fallback key; the old current becomes the previous one."""
        self._check_live()
        new = self._new_keys(1)[0]
        if self._prev_fallback_key is not None:
            self._prev_fallback_key.clear()
        self._prev_fallback_key = self._fallback_key
        self._fallback_key = new
        log.info(f"[FALLBACK] generated fallback key id={new.key_id_text}")

    def fallback_key(self) -> OneTimeKeys:
        self._check_live()
        k = self._fallback_key
        return OneTimeKeys({k.key_id_text: k.public_b64} if k else {})

    def unpublished_fallback_key(self) -> OneTimeKeys:
        self._check_live()
        k = self._fallback_key
        return OneTimeKeys({k.key_id_text: k.public_b64} if k and not k.published else {})

    def forget_old_fallback_key(self) -> None:
        self._check_live()
        if self._prev_fallback_key is not None:
            self._prev_fallback_key.clear()
            self._prev_fallback_key = None
            log.info("[FALLBACK] forgot previous fallback key")

    # ------------------------------------------------------------------
    # Pickling
    # ------------------------------------------------------------------
    def _state(self) -> Dict[str, Any]:
        return {
            "version": PICKLE_VERSION,
            "signing_seed": b64e(self._signing_seed),
            "identity_private": b64e(self._identity_private),
            "next_key_id": self._next_key_id,
            "max_one_time_keys": self._max_one_time_keys,
            "one_time_keys": [k.to_pickle_dict() for k in self._one_time_keys],
            "fallback_key": self._fallback_key.to_pickle_dict() if self._fallback_key else None,
            "prev_fallback_key": self._prev_fallback_key.to_pickle_dict() if self._prev_fallback_key else None,
        }

    def pickle(self, key: str | bytes) -> str:
        """Encrypt the full account state under ``key`` as base64 text."""
        self._check_live()
        kbuf = _pickle_key(key)
        rbuf = read_random(PICKLE_RANDOM_LENGTH, self._random_source)
        plaintext = bytearray(canonical_json(self._state()))
        try:
            res = crypto.pickle_encrypt(kbuf, plaintext, rbuf)
            if not res.ok:
                log.error(f"[PICKLE] engine fault: {res.error}")
            return res.unwrap()
        finally:
            zero(plaintext)
            zero(rbuf)
