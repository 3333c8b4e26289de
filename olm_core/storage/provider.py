# olm_core/storage/provider.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from olm_core.storage.models import AccountRecord


class StorageProvider:
    """Contract every pickle store implements."""

    name: str = "base"

    def save_account(self, rec: AccountRecord) -> None:
        raise NotImplementedError

    def load_account(self, account_id: str) -> Optional[AccountRecord]:
        raise NotImplementedError

    def delete_account(self, account_id: str) -> bool:
        raise NotImplementedError

    def list_accounts(self) -> List[str]:
        raise NotImplementedError

    # audit
    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def events(self) -> List[Tuple[str, Dict[str, Any]]]:
        raise NotImplementedError

    def close(self) -> None:
        return
