"""
Protocol constants for the DSC Protocol model.

All rates and USD values are 18-decimal fixed point integers. Collateral
amounts are expressed in the smallest unit of their token.
"""

DECIMAL_PRECISION = 10**18
ONE_YEAR_IN_SECONDS = 365 * 24 * 60 * 60

# A vault is solvent while its health factor is at or above 1.0
MIN_HEALTH_FACTOR = DECIMAL_PRECISION
# Reported for vaults that carry no debt (uint256 max)
MAX_HEALTH_FACTOR = 2**256 - 1

# Oracle prices never carry more decimals than the canonical representation
CANONICAL_DECIMALS = 18
ORACLE_STALENESS_WINDOW = 2 * 60 * 60  # 2 hours

# Fees
PROTOCOL_FEE_APR = 10**16  # 1% per year, simple interest
LIQUIDATION_PENALTY_RATE = 10**16  # 1% of the liquidated debt, one-off

# Minimum debt a freshly opened vault must carry
MIN_DEBT = 100 * DECIMAL_PRECISION

# Liquidation speed bonus: decays linearly from 3% to 1.8% over one hour
DISCOUNT_START_RATE = 3 * 10**16
DISCOUNT_END_RATE = 18 * 10**15
DISCOUNT_DECAY_PERIOD = 60 * 60

# Liquidation size reward
HIGH_RISK_SIZE_REWARD_RATE = 15 * 10**15  # 1.5%
LOW_RISK_SIZE_REWARD_RATE = 5 * 10**15  # 0.5%
HIGH_RISK_OCR_FLOOR = 15 * 10**17  # 150%
MIN_SIZE_REWARD = 10 * DECIMAL_PRECISION
MAX_SIZE_REWARD = 5000 * DECIMAL_PRECISION

# Sentinel token reference for the chain's native asset
NATIVE_ASSET = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
