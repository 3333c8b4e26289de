from typing import Optional, Dict, Any, List, Tuple
from olm_core.storage.models import AccountRecord
from olm_core.storage.provider import StorageProvider


class InMemoryStorage(StorageProvider):
    name = "memory"

    def __init__(self):
        self.accounts: Dict[str, AccountRecord] = {}
        self.audit: List[Tuple[str, Dict[str, Any]]] = []

    def save_account(self, rec: AccountRecord):
        self.accounts[rec.account_id] = rec

    def load_account(self, account_id: str) -> Optional[AccountRecord]:
        return self.accounts.get(account_id)

    def delete_account(self, account_id: str) -> bool:
        return self.accounts.pop(account_id, None) is not None

    def list_accounts(self) -> List[str]:
        return sorted(self.accounts)

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]):
        self.audit.append((event_type, dict(payload)))

    def events(self):
        return list(self.audit)
