import os

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from olm_core import Account, ed25519_verify, ed25519_pk_to_curve25519
from olm_core.errors import CryptoEngineError, RandomnessError, ACCOUNT_CLEARED
from olm_core.utils import b64d, b64e


class FlakySource:
    """Random source that can be switched to fail or return short reads."""

    def __init__(self):
        self.mode = "ok"

    def __call__(self, n):
        if self.mode == "raise":
            raise OSError("entropy pool unavailable")
        if self.mode == "short":
            return b"\x01" * (n - 1)
        return os.urandom(n)


def test_create_has_distinct_identity_keys():
    a = Account.create()
    b = Account.create()
    ka, kb = a.identity_keys(), b.identity_keys()
    assert len(b64d(ka.curve25519)) == 32
    assert len(b64d(ka.ed25519)) == 32
    assert ka != kb


def test_identity_keys_json_fields():
    acc = Account.create()
    text = acc.identity_keys_json()
    assert '"curve25519"' in text and '"ed25519"' in text
    assert acc.identity_keys().to_json() == text


def test_identity_keys_are_stable():
    acc = Account.create()
    first = acc.identity_keys()
    acc.generate_one_time_keys(3)
    acc.mark_keys_as_published()
    assert acc.identity_keys() == first


def test_sign_verifies_with_identity_key():
    acc = Account.create()
    sig = acc.sign(b"hello world")
    pub = acc.identity_keys().ed25519
    assert ed25519_verify(pub, b"hello world", sig)
    assert not ed25519_verify(pub, b"hello world!", sig)
    # plain Ed25519 verification, no olm_core helpers
    ed25519.Ed25519PublicKey.from_public_bytes(b64d(pub)).verify(b64d(sig), b"hello world")


def test_sign_is_deterministic_and_accepts_str():
    acc = Account.create()
    assert acc.sign("message") == acc.sign(b"message")


def test_sign_empty_message():
    # Ed25519 defines signatures over the empty string
    acc = Account.create()
    sig = acc.sign(b"")
    assert len(b64d(sig)) == 64
    assert ed25519_verify(acc.identity_keys().ed25519, b"", sig)


def test_sign_rejects_non_bytes():
    acc = Account.create()
    with pytest.raises(TypeError):
        acc.sign(12345)


def test_create_randomness_failure():
    src = FlakySource()
    src.mode = "raise"
    with pytest.raises(RandomnessError):
        Account.create(random_source=src)

    src.mode = "short"
    with pytest.raises(RandomnessError):
        Account.create(random_source=src)


def test_generate_randomness_failure_leaves_keys_untouched():
    src = FlakySource()
    acc = Account.create(random_source=src)
    acc.generate_one_time_keys(2)
    before = acc.one_time_keys()

    src.mode = "raise"
    with pytest.raises(RandomnessError):
        acc.generate_one_time_keys(5)
    assert acc.one_time_keys() == before


def test_from_signing_key_keeps_ed25519_identity():
    sk = ed25519.Ed25519PrivateKey.generate()
    acc = Account.from_signing_key(sk)
    assert acc.identity_keys().ed25519 == b64e(sk.public_key().public_bytes_raw())

    msg = b"signed by the external key"
    assert ed25519_verify(acc.identity_keys().ed25519, msg, acc.sign(msg))


def test_from_signing_key_is_deterministic():
    seed = ed25519.Ed25519PrivateKey.generate().private_bytes_raw()
    a = Account.from_signing_key(seed)
    b = Account.from_signing_key(ed25519.Ed25519PrivateKey.from_private_bytes(seed))
    assert a.identity_keys() == b.identity_keys()


def test_from_signing_key_independent_curve_key():
    seed = ed25519.Ed25519PrivateKey.generate().private_bytes_raw()
    acc = Account.from_signing_key(seed)
    expected = x25519.X25519PrivateKey.from_private_bytes(seed).public_key().public_bytes_raw()
    assert acc.identity_keys().curve25519 == b64e(expected)


def test_from_signing_key_converted_curve_key():
    sk = ed25519.Ed25519PrivateKey.generate()
    acc = Account.from_signing_key(sk, convert=True)
    ids = acc.identity_keys()
    converted = ed25519_pk_to_curve25519(b64d(ids.ed25519)).unwrap()
    assert b64e(converted) == ids.curve25519
    assert Account.from_signing_key(sk).identity_keys().curve25519 != ids.curve25519


def test_from_signing_key_rejects_bad_seed():
    with pytest.raises(CryptoEngineError):
        Account.from_signing_key(b"too short")


def test_clear_zeroes_and_disables():
    acc = Account.create()
    acc.generate_one_time_keys(2)
    acc.clear()
    assert acc._signing_seed == bytearray(32)
    assert acc._identity_private == bytearray(32)
    with pytest.raises(CryptoEngineError) as exc:
        acc.sign(b"x")
    assert exc.value.code == ACCOUNT_CLEARED
    assert "cleared" in repr(acc)


def test_context_manager_clears():
    with Account.create() as acc:
        acc.sign(b"inside")
    with pytest.raises(CryptoEngineError):
        acc.identity_keys()


def test_repr_has_no_secrets():
    acc = Account.create()
    assert b64e(acc._signing_seed) not in repr(acc)
