"""
Unit tests for the fee and incentive curves of the DSC protocol.
"""

import unittest
import sys
import os

# Add the repository root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dsc_protocol.collateral_registry import threshold_from_ocr
from dsc_protocol.constants import (
    DECIMAL_PRECISION,
    DISCOUNT_END_RATE,
    DISCOUNT_START_RATE,
    MAX_SIZE_REWARD,
    MIN_SIZE_REWARD,
    ONE_YEAR_IN_SECONDS,
)
from dsc_protocol.fees import (
    discount_rate,
    liquidation_penalty,
    protocol_fee,
    size_reward,
    size_reward_rate,
)

WAD = DECIMAL_PRECISION


class TestProtocolFee(unittest.TestCase):
    def test_half_year_fee(self):
        """Test that 100 DSC of debt owes 0.5 DSC after half a year at 1% APR."""
        self.assertEqual(protocol_fee(100 * WAD, ONE_YEAR_IN_SECONDS // 2), WAD // 2)

    def test_full_year_fee(self):
        self.assertEqual(protocol_fee(300 * WAD, ONE_YEAR_IN_SECONDS), 3 * WAD)

    def test_fee_is_linear_in_time(self):
        """Test that splitting a period in two settlements charges the same fee."""
        debt = 1234 * WAD
        whole = protocol_fee(debt, 1000)
        split = protocol_fee(debt, 400) + protocol_fee(debt, 600)
        # Each settlement rounds down at most one unit
        self.assertLessEqual(whole - split, 1)
        self.assertGreaterEqual(whole, split)

    def test_no_fee_without_debt_or_time(self):
        self.assertEqual(protocol_fee(0, ONE_YEAR_IN_SECONDS), 0)
        self.assertEqual(protocol_fee(100 * WAD, 0), 0)

    def test_custom_apr(self):
        self.assertEqual(protocol_fee(100 * WAD, ONE_YEAR_IN_SECONDS, apr=5 * 10**16), 5 * WAD)


class TestLiquidationPenalty(unittest.TestCase):
    def test_one_percent_of_debt(self):
        self.assertEqual(liquidation_penalty(100 * WAD), WAD)
        self.assertEqual(liquidation_penalty(12_345 * WAD), 12_345 * WAD // 100)


class TestDiscountRate(unittest.TestCase):
    def test_starts_at_three_percent(self):
        self.assertEqual(discount_rate(0), DISCOUNT_START_RATE)
        self.assertEqual(DISCOUNT_START_RATE, 3 * 10**16)

    def test_halfway(self):
        """Test the linear decay halfway through the decay period."""
        self.assertEqual(discount_rate(1800), 24 * 10**15)

    def test_floor_after_decay_period(self):
        self.assertEqual(discount_rate(3600), DISCOUNT_END_RATE)
        self.assertEqual(discount_rate(7200), DISCOUNT_END_RATE)
        self.assertEqual(DISCOUNT_END_RATE, 18 * 10**15)

    def test_monotonic(self):
        rates = [discount_rate(t) for t in range(0, 4000, 100)]
        self.assertEqual(rates, sorted(rates, reverse=True))


class TestSizeReward(unittest.TestCase):
    def test_tiers(self):
        """Test that OCR >= 150% pays the high-risk rate."""
        self.assertEqual(size_reward_rate(threshold_from_ocr(170)), 15 * 10**15)
        self.assertEqual(size_reward_rate(threshold_from_ocr(150)), 15 * 10**15)
        self.assertEqual(size_reward_rate(threshold_from_ocr(149)), 5 * 10**15)
        self.assertEqual(size_reward_rate(threshold_from_ocr(110)), 5 * 10**15)

    def test_unclamped_reward(self):
        self.assertEqual(size_reward(10_000 * WAD, threshold_from_ocr(170)), 150 * WAD)
        self.assertEqual(size_reward(10_000 * WAD, threshold_from_ocr(120)), 50 * WAD)

    def test_floor(self):
        """Test that small debts still pay the minimum reward."""
        self.assertEqual(size_reward(100 * WAD, threshold_from_ocr(170)), MIN_SIZE_REWARD)
        self.assertEqual(MIN_SIZE_REWARD, 10 * WAD)

    def test_cap(self):
        self.assertEqual(size_reward(1_000_000 * WAD, threshold_from_ocr(170)), MAX_SIZE_REWARD)
        self.assertEqual(MAX_SIZE_REWARD, 5000 * WAD)


if __name__ == '__main__':
    unittest.main()
