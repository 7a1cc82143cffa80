"""
Fee and incentive curves for the DSC Protocol.

Pure functions: no state, no oracle access. All inputs and outputs are
18-decimal fixed point USD values or rates, except durations in seconds.
"""

from .constants import (
    DECIMAL_PRECISION,
    ONE_YEAR_IN_SECONDS,
    PROTOCOL_FEE_APR,
    LIQUIDATION_PENALTY_RATE,
    DISCOUNT_START_RATE,
    DISCOUNT_END_RATE,
    DISCOUNT_DECAY_PERIOD,
    HIGH_RISK_SIZE_REWARD_RATE,
    LOW_RISK_SIZE_REWARD_RATE,
    HIGH_RISK_OCR_FLOOR,
    MIN_SIZE_REWARD,
    MAX_SIZE_REWARD,
)
from .collateral_registry import implied_ocr


def protocol_fee(debt: int, elapsed_seconds: int, apr: int = PROTOCOL_FEE_APR) -> int:
    """
    Simple-interest protocol fee owed on a debt over a period.

    The fee is prorated by the exact number of elapsed seconds and is never
    compounded: it is charged on the debt alone, never on earlier fees.

    Args:
        debt: Outstanding debt
        elapsed_seconds: Seconds since the last settlement
        apr: Annual rate

    Returns:
        The fee in USD
    """
    if debt <= 0 or elapsed_seconds <= 0:
        return 0
    return debt * apr * elapsed_seconds // (ONE_YEAR_IN_SECONDS * DECIMAL_PRECISION)


def liquidation_penalty(debt: int, rate: int = LIQUIDATION_PENALTY_RATE) -> int:
    """Flat one-off penalty charged on a liquidated debt."""
    return debt * rate // DECIMAL_PRECISION


def discount_rate(elapsed_seconds: int,
                  start_rate: int = DISCOUNT_START_RATE,
                  end_rate: int = DISCOUNT_END_RATE,
                  decay_period: int = DISCOUNT_DECAY_PERIOD) -> int:
    """
    Speed bonus rate for a vault underwater for elapsed_seconds.

    Decays linearly from start_rate at onset to end_rate at the end of the
    decay period and stays flat afterwards. Rewards liquidators who act fast.
    """
    if elapsed_seconds <= 0:
        return start_rate
    if elapsed_seconds >= decay_period:
        return end_rate
    return start_rate - (start_rate - end_rate) * elapsed_seconds // decay_period


def size_reward_rate(threshold: int,
                     high_risk_rate: int = HIGH_RISK_SIZE_REWARD_RATE,
                     low_risk_rate: int = LOW_RISK_SIZE_REWARD_RATE,
                     high_risk_ocr_floor: int = HIGH_RISK_OCR_FLOOR) -> int:
    """
    Size reward rate of a collateral type.

    Collateral requiring an overcollateralization of 150% or more is treated as
    high risk and pays the higher rate.
    """
    if implied_ocr(threshold) >= high_risk_ocr_floor:
        return high_risk_rate
    return low_risk_rate


def size_reward(debt: int, threshold: int,
                high_risk_rate: int = HIGH_RISK_SIZE_REWARD_RATE,
                low_risk_rate: int = LOW_RISK_SIZE_REWARD_RATE,
                high_risk_ocr_floor: int = HIGH_RISK_OCR_FLOOR,
                min_reward: int = MIN_SIZE_REWARD,
                max_reward: int = MAX_SIZE_REWARD) -> int:
    """
    Debt-size scaled liquidation reward, clamped to [min_reward, max_reward].
    """
    rate = size_reward_rate(threshold, high_risk_rate, low_risk_rate, high_risk_ocr_floor)
    reward = rate * debt // DECIMAL_PRECISION
    return min(max(reward, min_reward), max_reward)
