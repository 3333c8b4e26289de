# olm_core/storage/__init__.py
from __future__ import annotations
from typing import Optional

from .models import AccountRecord
from .provider import StorageProvider
from .providers.memory_provider import InMemoryStorage
from .providers.sqlite_provider import SQLiteStorage
from olm_core.account import Account
from olm_core.config import load_storage_settings
from olm_core.logger import get_logger

log = get_logger("olm_core.storage")


def load_storage_provider(config: dict | None = None) -> StorageProvider:
    """
    Factory resolver for the pickle store backend:
        - memory (default)
        - sqlite
    """
    provider, db_path = load_storage_settings(config)
    if provider == "sqlite":
        return SQLiteStorage(db_path)
    return InMemoryStorage()


def store_account(store: StorageProvider, account_id: str, account: Account, key: str | bytes) -> AccountRecord:
    """Pickle ``account`` under ``key`` and save it as ``account_id``."""
    ids = account.identity_keys()
    rec = AccountRecord(
        account_id=account_id,
        pickle=account.pickle(key),
        curve25519=ids.curve25519,
        ed25519=ids.ed25519,
    )
    store.save_account(rec)
    store.log_event("account.stored", {"account_id": account_id, "ed25519": ids.ed25519})
    log.info(f"[STORE] saved account {account_id} to {store.name}")
    return rec


def restore_account(store: StorageProvider, account_id: str, key: str | bytes) -> Optional[Account]:
    """Load and unpickle ``account_id``; None if the store has no such record."""
    rec = store.load_account(account_id)
    if rec is None:
        return None
    account = Account.from_pickle(key, rec.pickle)
    store.log_event("account.restored", {"account_id": account_id, "ed25519": rec.ed25519})
    return account


__all__ = [
    "AccountRecord",
    "StorageProvider",
    "InMemoryStorage",
    "SQLiteStorage",
    "load_storage_provider",
    "store_account",
    "restore_account",
]
