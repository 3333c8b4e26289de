from types import SimpleNamespace

import pytest

from olm_core import Account, HandshakeRecord, SessionLike
from olm_core.errors import KeyNotFoundError
from olm_core.keys import key_id_to_text
from olm_core.utils import b64d


def _session_for(public_b64):
    return HandshakeRecord(identity_key=b"\x01" * 32, base_key=b"\x02" * 32, one_time_key=b64d(public_b64))


def test_generate_and_list():
    acc = Account.create()
    acc.generate_one_time_keys(5)
    otks = acc.one_time_keys()
    assert len(otks) == 5
    assert set(otks.curve25519) == {key_id_to_text(i) for i in range(1, 6)}
    assert key_id_to_text(1) == "AAAAAQ"


def test_one_time_keys_is_a_pure_read():
    acc = Account.create()
    acc.generate_one_time_keys(4)
    assert acc.one_time_keys() == acc.one_time_keys()
    assert acc.one_time_keys_json() == acc.one_time_keys_json()


def test_zero_and_negative_counts():
    acc = Account.create()
    acc.generate_one_time_keys(0)
    assert len(acc.one_time_keys()) == 0
    with pytest.raises(ValueError):
        acc.generate_one_time_keys(-1)


def test_key_ids_never_reused_after_removal():
    acc = Account.create()
    acc.generate_one_time_keys(3)
    seen = set(acc.one_time_keys().curve25519)
    for public in list(acc.one_time_keys().curve25519.values()):
        acc.remove_one_time_keys(_session_for(public))
    acc.generate_one_time_keys(3)
    fresh = set(acc.one_time_keys().curve25519)
    assert len(fresh) == 3
    assert not (seen & fresh)


def test_eviction_drops_oldest_first():
    acc = Account.create(max_one_time_keys=5)
    assert acc.max_one_time_keys() == 5
    acc.generate_one_time_keys(3)
    acc.generate_one_time_keys(4)
    ids = set(acc.one_time_keys().curve25519)
    assert ids == {key_id_to_text(i) for i in range(3, 8)}


def test_eviction_at_default_cap():
    acc = Account.create()
    cap = acc.max_one_time_keys()
    assert cap == 100
    acc.generate_one_time_keys(cap + 5)
    ids = set(acc.one_time_keys().curve25519)
    assert len(ids) == cap
    assert ids == {key_id_to_text(i) for i in range(6, cap + 6)}


def test_published_keys_are_excluded_but_still_held():
    acc = Account.create()
    acc.generate_one_time_keys(5)
    published = acc.one_time_keys()
    acc.mark_keys_as_published()
    assert len(acc.one_time_keys()) == 0

    acc.generate_one_time_keys(3)
    current = acc.one_time_keys()
    assert len(current) == 3
    assert not set(current.curve25519) & set(published.curve25519)

    # Published keys still serve inbound sessions until removed
    for public in published.curve25519.values():
        assert acc.find_one_time_key(public) is not None


def test_remove_twice_raises_and_keeps_other_keys():
    acc = Account.create()
    acc.generate_one_time_keys(3)
    keys = acc.one_time_keys().curve25519
    target_id, target = sorted(keys.items())[0]
    session = _session_for(target)

    acc.remove_one_time_keys(session)
    remaining = acc.one_time_keys()
    assert target_id not in remaining.curve25519
    assert len(remaining) == 2

    with pytest.raises(KeyNotFoundError):
        acc.remove_one_time_keys(session)
    assert acc.one_time_keys() == remaining


def test_remove_session_from_other_account():
    mine = Account.create()
    other = Account.create()
    mine.generate_one_time_keys(2)
    other.generate_one_time_keys(1)
    foreign = list(other.one_time_keys().curve25519.values())[0]

    with pytest.raises(KeyNotFoundError):
        mine.remove_one_time_keys(_session_for(foreign))
    assert len(mine.one_time_keys()) == 2


def test_remove_accepts_any_session_like_object():
    acc = Account.create()
    acc.generate_one_time_keys(1)
    public = list(acc.one_time_keys().curve25519.values())[0]
    session = SimpleNamespace(one_time_key=public)
    assert isinstance(session, SessionLike)
    acc.remove_one_time_keys(session)
    assert len(acc.one_time_keys()) == 0


def test_remove_session_without_one_time_key():
    acc = Account.create()
    acc.generate_one_time_keys(1)
    with pytest.raises(KeyNotFoundError):
        acc.remove_one_time_keys(SimpleNamespace(one_time_key=None))


def test_handshake_record_from_dict():
    acc = Account.create()
    acc.generate_one_time_keys(1)
    public = list(acc.one_time_keys().curve25519.values())[0]
    ids = acc.identity_keys()
    rec = HandshakeRecord.from_dict({
        "identity_key": ids.curve25519,
        "base_key": ids.curve25519,
        "one_time_key": public,
    })
    acc.remove_one_time_keys(rec)
    assert len(acc.one_time_keys()) == 0


def test_fallback_key_lifecycle():
    acc = Account.create()
    assert len(acc.fallback_key()) == 0

    acc.generate_fallback_key()
    first = acc.fallback_key()
    assert len(first) == 1
    assert acc.unpublished_fallback_key() == first

    acc.mark_keys_as_published()
    assert len(acc.unpublished_fallback_key()) == 0
    assert acc.fallback_key() == first

    acc.generate_fallback_key()
    second = acc.fallback_key()
    assert second != first
    assert len(acc.unpublished_fallback_key()) == 1

    old_public = list(first.curve25519.values())[0]
    assert acc.find_one_time_key(old_public) is not None
    acc.forget_old_fallback_key()
    assert acc.find_one_time_key(old_public) is None


def test_fallback_key_shares_id_counter_and_is_not_removable():
    acc = Account.create()
    acc.generate_one_time_keys(2)
    acc.generate_fallback_key()
    (fb_id, fb_public), = acc.fallback_key().curve25519.items()
    assert fb_id == key_id_to_text(3)

    with pytest.raises(KeyNotFoundError):
        acc.remove_one_time_keys(_session_for(fb_public))
    assert len(acc.fallback_key()) == 1


@pytest.mark.parametrize("one_time_key", [b"c" * 31, "not*base64", b""])
def test_remove_with_malformed_session_key(one_time_key):
    acc = Account.create()
    acc.generate_one_time_keys(2)
    before = acc.one_time_keys()
    session = SimpleNamespace(one_time_key=one_time_key)
    with pytest.raises(KeyNotFoundError):
        acc.remove_one_time_keys(session)
    assert acc.one_time_keys() == before
    with pytest.raises(KeyNotFoundError):
        acc.remove_one_time_keys(HandshakeRecord(b"a" * 32, b"b" * 32, b"c" * 31))
    assert acc.one_time_keys() == before
