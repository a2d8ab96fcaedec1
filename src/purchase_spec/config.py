"""Purchase escrow configuration constants.

Keep this file aligned with the deployed escrow contract parameters.
"""

# Units
COIN_DECIMALS = 18
COIN_VALUE = 10**COIN_DECIMALS
# Catalog prices are quoted in thousandths of a coin.
PRICE_UNIT = COIN_VALUE // 1000

# Timeout escalation (seconds)
MIN_TIMEOUT = 1
MAX_TIMEOUT = 365 * 24 * 3600
DEFAULT_TIMEOUT = 7 * 24 * 3600

# Free-text limits
MAX_NOTES_LEN = 1024
MAX_DESCRIPTION_LEN = 1024
MAX_PUBLIC_KEY_LEN = 4096

# Commit-reveal
ID_SIZE = 32
COMMITMENT_SIZE = 32
NONCE_SIZE = 32

# Ledger
MAX_U64 = 2**64 - 1
MAX_AMOUNT = 2**128 - 1
