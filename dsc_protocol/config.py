"""
Engine configuration for the DSC Protocol model.

Groups the tunable risk and fee parameters so a simulation can run the engine
with a different fee level or incentive curve without touching the code.
"""

from dataclasses import dataclass, replace

from .constants import (
    PROTOCOL_FEE_APR,
    LIQUIDATION_PENALTY_RATE,
    MIN_DEBT,
    ORACLE_STALENESS_WINDOW,
    DISCOUNT_START_RATE,
    DISCOUNT_END_RATE,
    DISCOUNT_DECAY_PERIOD,
    HIGH_RISK_SIZE_REWARD_RATE,
    LOW_RISK_SIZE_REWARD_RATE,
    HIGH_RISK_OCR_FLOOR,
    MIN_SIZE_REWARD,
    MAX_SIZE_REWARD,
)


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunable protocol parameters, all 18-decimal fixed point except for the
    durations (seconds).
    """
    protocol_fee_apr: int = PROTOCOL_FEE_APR
    liquidation_penalty_rate: int = LIQUIDATION_PENALTY_RATE
    min_debt: int = MIN_DEBT
    oracle_staleness_window: int = ORACLE_STALENESS_WINDOW
    discount_start_rate: int = DISCOUNT_START_RATE
    discount_end_rate: int = DISCOUNT_END_RATE
    discount_decay_period: int = DISCOUNT_DECAY_PERIOD
    high_risk_size_reward_rate: int = HIGH_RISK_SIZE_REWARD_RATE
    low_risk_size_reward_rate: int = LOW_RISK_SIZE_REWARD_RATE
    high_risk_ocr_floor: int = HIGH_RISK_OCR_FLOOR
    min_size_reward: int = MIN_SIZE_REWARD
    max_size_reward: int = MAX_SIZE_REWARD

    def __post_init__(self):
        if self.discount_end_rate > self.discount_start_rate:
            raise ValueError("Discount must decay: end rate is above start rate")
        if self.discount_decay_period <= 0:
            raise ValueError("Discount decay period must be positive")
        if self.min_size_reward > self.max_size_reward:
            raise ValueError("Size reward floor is above its cap")

    def with_overrides(self, **overrides):
        """Returns a copy of this config with the given fields replaced."""
        return replace(self, **overrides)


DEFAULT_CONFIG = EngineConfig()
