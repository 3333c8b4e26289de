from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
import json, sqlite3, os
from olm_core.storage.provider import StorageProvider
from olm_core.storage.models import AccountRecord
from olm_core.utils import now_ts


class SQLiteStorage(StorageProvider):
    name = "sqlite"

    def __init__(self, path="db/olm_accounts.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)
        self._init()

    def _init(self) -> None:
        c = self.db.cursor()
        c.execute("""CREATE TABLE IF NOT EXISTS accounts(
            account_id TEXT PRIMARY KEY,
            pickle TEXT NOT NULL,
            curve25519 TEXT NOT NULL,
            ed25519 TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS audit(
            ts TEXT,
            event_type TEXT,
            payload TEXT
        )""")
        self.db.commit()

    def save_account(self, rec: AccountRecord) -> None:
        self.db.execute(
            "INSERT INTO accounts(account_id,pickle,curve25519,ed25519,updated_at) VALUES(?,?,?,?,?) "
            "ON CONFLICT(account_id) DO UPDATE SET pickle=excluded.pickle, curve25519=excluded.curve25519, "
            "ed25519=excluded.ed25519, updated_at=excluded.updated_at",
            (rec.account_id, rec.pickle, rec.curve25519, rec.ed25519, rec.updated_at)
        )
        self.db.commit()

    def load_account(self, account_id: str) -> Optional[AccountRecord]:
        cur = self.db.execute(
            "SELECT account_id,pickle,curve25519,ed25519,updated_at FROM accounts WHERE account_id=?",
            (account_id,)
        )
        row = cur.fetchone()
        if not row: return None
        return AccountRecord(*row)

    def delete_account(self, account_id: str) -> bool:
        cur = self.db.execute("DELETE FROM accounts WHERE account_id=?", (account_id,))
        self.db.commit()
        return cur.rowcount > 0

    def list_accounts(self) -> List[str]:
        cur = self.db.execute("SELECT account_id FROM accounts ORDER BY account_id")
        return [r[0] for r in cur.fetchall()]

    def log_event(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.db.execute("INSERT INTO audit(ts,event_type,payload) VALUES(?,?,?)",
                        (now_ts(), event_type, json.dumps(payload, separators=(",", ":"), sort_keys=True)))
        self.db.commit()

    def events(self) -> List[Tuple[str, Dict[str, Any]]]:
        cur = self.db.execute("SELECT event_type, payload FROM audit ORDER BY rowid")
        return [(event_type, json.loads(payload)) for event_type, payload in cur.fetchall()]

    def close(self):
        self.db.close()
