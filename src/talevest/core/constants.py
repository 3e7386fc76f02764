"""
Tale Vesting Constants

Validation floors and ceilings enforced by the schedule factory, plus the
token parameters used at deployment time.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_DAY: Final[int] = 86400  # 60 * 60 * 24
SECONDS_PER_30_DAYS: Final[int] = 2592000  # 60 * 60 * 24 * 30
SECONDS_PER_YEAR: Final[int] = 31536000  # 60 * 60 * 24 * 365

# =============================================================================
# ADDRESSES
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# TOKEN
# =============================================================================

TOKEN_NAME: Final[str] = "PrompTale"
TOKEN_SYMBOL: Final[str] = "PTL"
TOKEN_DECIMALS: Final[int] = 18
ONE_TOKEN: Final[int] = 10**TOKEN_DECIMALS
INITIAL_SUPPLY_TOKENS: Final[int] = 500_000_000
INITIAL_SUPPLY: Final[int] = INITIAL_SUPPLY_TOKENS * ONE_TOKEN
UINT256_MAX: Final[int] = 2**256 - 1

# =============================================================================
# SCHEDULE FACTORY LIMITS
# =============================================================================

# interval_length must be strictly greater than this
MIN_INTERVAL_LENGTH: Final[int] = SECONDS_PER_DAY

# start_time must fall within [now, now + MAX_START_DELAY]
MAX_START_DELAY: Final[int] = SECONDS_PER_YEAR

MAX_TOTAL_INTERVALS: Final[int] = 365

# Dust floor: one whole token in base units
MIN_TOTAL_AMOUNT: Final[int] = ONE_TOKEN
