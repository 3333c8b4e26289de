# olm_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass, field

from olm_core.utils import now_ts


@dataclass
class AccountRecord:
    """
    Storage-level representation of a pickled account.

    Only the encrypted pickle and the public identity keys are stored;
    the pickle key never reaches a provider.
    """
    account_id: str
    pickle: str
    curve25519: str
    ed25519: str
    updated_at: str = field(default_factory=now_ts)
