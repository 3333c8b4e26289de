"""
olm_core.errors
---------------
Error taxonomy for account operations.

Every error carries a short machine-readable ``code`` (modelled on the
libolm error strings) and a human-readable ``message``. ``PickleError`` is
deliberately a sibling of ``CryptoEngineError`` rather than a subclass so
callers can tell "wrong passphrase" apart from an engine fault.
"""

from __future__ import annotations

# Engine fault codes
NOT_ENOUGH_RANDOM = "NOT_ENOUGH_RANDOM"
INVALID_KEY = "INVALID_KEY"
SIGN_FAILED = "SIGN_FAILED"
ACCOUNT_CLEARED = "ACCOUNT_CLEARED"
KEY_ID_EXHAUSTED = "KEY_ID_EXHAUSTED"

# Pickle codes
BAD_ACCOUNT_KEY = "BAD_ACCOUNT_KEY"
CORRUPTED_PICKLE = "CORRUPTED_PICKLE"
INVALID_BASE64 = "INVALID_BASE64"
UNKNOWN_PICKLE_VERSION = "UNKNOWN_PICKLE_VERSION"

BAD_MESSAGE_KEY_ID = "BAD_MESSAGE_KEY_ID"
BAD_JSON = "BAD_JSON"


class OlmError(Exception):
    default_code = "OLM_ERROR"

    def __init__(self, code: str | None = None, message: str = ""):
        self.code = code or self.default_code
        self.message = message or self.code
        super().__init__(f"{self.code}: {self.message}")


class RandomnessError(OlmError):
    """The random source could not supply the requested bytes."""
    default_code = NOT_ENOUGH_RANDOM


class CryptoEngineError(OlmError):
    """The primitive engine reported a fault."""
    default_code = "ENGINE_FAULT"


class PickleError(OlmError):
    """A pickle could not be decrypted or decoded (wrong key or corrupt data)."""
    default_code = CORRUPTED_PICKLE


class KeyNotFoundError(OlmError):
    """A one-time key removal referenced a key the account does not hold."""
    default_code = BAD_MESSAGE_KEY_ID


class DeserializationError(OlmError):
    """A public key bundle did not parse into the expected mapping."""
    default_code = BAD_JSON
