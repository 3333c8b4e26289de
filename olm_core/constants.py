# olm_core/constants.py

# Key algorithm labels. These are protocol-fixed field names.
CURVE25519 = "curve25519"
ED25519 = "ed25519"

ED25519_SEED_LENGTH = 32
ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64
CURVE25519_KEY_LENGTH = 32

# Random bytes consumed per operation
CREATE_ACCOUNT_RANDOM_LENGTH = ED25519_SEED_LENGTH + CURVE25519_KEY_LENGTH
ONE_TIME_KEY_RANDOM_LENGTH = CURVE25519_KEY_LENGTH

MAX_ONE_TIME_KEYS = 100
MAX_KEY_ID = 0xFFFFFFFF

# Pickle codec
PICKLE_VERSION = 1
PICKLE_SALT_LENGTH = 16
PICKLE_NONCE_LENGTH = 12
PICKLE_RANDOM_LENGTH = PICKLE_SALT_LENGTH + PICKLE_NONCE_LENGTH
PICKLE_HKDF_INFO = b"olm_core/pickle/v1"
