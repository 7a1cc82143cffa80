"""
Unit tests for the VaultLedger module of the DSC protocol.

Covers health factors, fee settlement on locked collateral and the
aggregate debt counter.
"""

import unittest

from protocol_fixture import ENGINE, WAD, ProtocolFixture
from dsc_protocol.constants import MAX_HEALTH_FACTOR, ONE_YEAR_IN_SECONDS
from dsc_protocol.errors import (
    InsufficientCollateral,
    InsufficientDebt,
    UnderCollateralized,
    VaultAlreadyExists,
    VaultNotFound,
)
from dsc_protocol.events import FeeSettled

HALF_YEAR = ONE_YEAR_IN_SECONDS // 2


class TestHealthFactor(unittest.TestCase):
    def setUp(self):
        self.protocol = ProtocolFixture(eth_price=200)
        self.ledger = self.protocol.ledger

    def test_health_factor_formula(self):
        """Test health = collateral_usd * threshold / debt."""
        self.protocol.open_vault("alice", WAD, 100 * WAD)

        # 200 USD * (1 / 1.7) / 100 DSC
        self.assertEqual(self.ledger.health_factor("ETH", "alice"), 1176470588235294116)
        self.assertTrue(self.ledger.is_healthy("ETH", "alice"))

        self.protocol.set_price("ETH", 140)
        self.assertFalse(self.ledger.is_healthy("ETH", "alice"))

    def test_zero_debt_is_max_health(self):
        """Test that a debt-free vault is healthy without reading the oracle."""
        self.protocol.pool.deposit("ETH", "alice", WAD)
        self.ledger.open("ETH", "alice", WAD, 0)

        # A stale oracle would raise if it were read
        self.protocol.clock.advance(10 * 7200)
        self.assertEqual(self.ledger.health_factor("ETH", "alice"), MAX_HEALTH_FACTOR)

    def test_missing_vault_is_max_health(self):
        self.assertEqual(self.ledger.health_factor("ETH", "nobody"), MAX_HEALTH_FACTOR)

    def test_require_healthy(self):
        self.protocol.open_vault("alice", WAD, 100 * WAD)
        self.protocol.set_price("ETH", 100)

        with self.assertRaises(UnderCollateralized) as context:
            self.ledger.require_healthy("ETH", "alice")
        self.assertLess(context.exception.health_factor, WAD)


class TestVaultMutations(unittest.TestCase):
    def setUp(self):
        self.protocol = ProtocolFixture(eth_price=200)
        self.ledger = self.protocol.ledger
        self.protocol.pool.deposit("ETH", "alice", 5 * WAD)

    def test_open_locks_collateral(self):
        self.ledger.open("ETH", "alice", 2 * WAD, 100 * WAD)

        self.assertEqual(self.ledger.collateral_of("ETH", "alice"), 2 * WAD)
        self.assertEqual(self.ledger.debt_of("ETH", "alice"), 100 * WAD)
        self.assertEqual(self.protocol.pool.balance_of("ETH", "alice"), 3 * WAD)
        self.assertEqual(self.protocol.registry.get("ETH").total_debt, 100 * WAD)

    def test_open_twice_rejected(self):
        self.ledger.open("ETH", "alice", WAD, 0)
        with self.assertRaises(VaultAlreadyExists):
            self.ledger.open("ETH", "alice", WAD, 0)

    def test_open_needs_unlocked_balance(self):
        with self.assertRaises(InsufficientCollateral):
            self.ledger.open("ETH", "alice", 6 * WAD, 0)

    def test_shrink_debt(self):
        self.ledger.open("ETH", "alice", 2 * WAD, 300 * WAD)
        self.ledger.shrink_debt("ETH", "alice", 250 * WAD)

        # Dust below the minimum debt is allowed after a repayment
        self.assertEqual(self.ledger.debt_of("ETH", "alice"), 50 * WAD)
        self.assertEqual(self.protocol.registry.get("ETH").total_debt, 50 * WAD)

        with self.assertRaises(InsufficientDebt):
            self.ledger.shrink_debt("ETH", "alice", 51 * WAD)

    def test_shrink_collateral(self):
        self.ledger.open("ETH", "alice", 2 * WAD, 0)
        self.ledger.shrink_collateral("ETH", "alice", WAD)

        self.assertEqual(self.ledger.collateral_of("ETH", "alice"), WAD)
        self.assertEqual(self.protocol.pool.balance_of("ETH", "alice"), 4 * WAD)

        with self.assertRaises(InsufficientCollateral):
            self.ledger.shrink_collateral("ETH", "alice", 2 * WAD)

    def test_close_if_empty(self):
        self.ledger.open("ETH", "alice", WAD, 0)
        self.assertFalse(self.ledger.close_if_empty("ETH", "alice"))

        self.ledger.shrink_collateral("ETH", "alice", WAD)
        self.assertTrue(self.ledger.close_if_empty("ETH", "alice"))
        with self.assertRaises(VaultNotFound):
            self.ledger.get_vault("ETH", "alice")

    def test_aggregate_debt_matches_vaults(self):
        self.protocol.pool.deposit("ETH", "bob", 5 * WAD)
        self.ledger.open("ETH", "alice", 2 * WAD, 120 * WAD)
        self.ledger.open("ETH", "bob", 3 * WAD, 200 * WAD)
        self.ledger.shrink_debt("ETH", "bob", 30 * WAD)

        self.assertEqual(self.ledger.sum_vault_debt("ETH"), 290 * WAD)
        self.assertEqual(self.protocol.registry.get("ETH").total_debt, 290 * WAD)


class TestFeeSettlement(unittest.TestCase):
    def setUp(self):
        # A 1 USD collateral makes fee tokens equal to fee USD
        self.protocol = ProtocolFixture(eth_price=200)
        self.protocol.add_collateral("USD1", 1, 110)
        self.ledger = self.protocol.ledger
        self.protocol.open_vault("alice", 1000 * WAD, 100 * WAD, collateral_id="USD1")

    def advance(self, seconds):
        self.protocol.advance(seconds, refresh=("ETH", "USD1"))

    def test_fee_taken_from_collateral(self):
        self.advance(HALF_YEAR)
        fee_tokens = self.ledger.settle_fee("USD1", "alice")

        self.assertEqual(fee_tokens, WAD // 2)
        self.assertEqual(self.ledger.collateral_of("USD1", "alice"), 1000 * WAD - WAD // 2)
        self.assertEqual(self.ledger.accrued_fees["USD1"], WAD // 2)
        # The debt itself is not touched
        self.assertEqual(self.ledger.debt_of("USD1", "alice"), 100 * WAD)

        event = self.protocol.events.last(FeeSettled)
        self.assertEqual(event.fee_usd, WAD // 2)
        self.assertEqual(event.fee_tokens, WAD // 2)

    def test_fee_is_not_compounded(self):
        """Test 100 DSC for half a year, then 300 DSC for half a year: 2 DSC in fees."""
        self.advance(HALF_YEAR)
        self.protocol.engine.mint_dsc("alice", "USD1", 0, 200 * WAD)
        self.assertEqual(self.ledger.accrued_fees["USD1"], WAD // 2)

        self.advance(HALF_YEAR)
        self.protocol.token.approve("alice", ENGINE, WAD)
        self.protocol.engine.burn_dsc("alice", "USD1", WAD)

        self.assertEqual(self.ledger.accrued_fees["USD1"], 2 * WAD)
        self.assertEqual(self.ledger.collateral_of("USD1", "alice"), 998 * WAD)

    def test_settlement_time_always_moves(self):
        vault = self.ledger.get_vault("USD1", "alice")
        self.advance(100)
        self.ledger.settle_fee("USD1", "alice")
        self.assertEqual(vault.last_fee_settlement, self.protocol.clock.now())

        # Settling twice at the same time charges nothing more
        self.assertEqual(self.ledger.settle_fee("USD1", "alice"), 0)

    def test_fee_capped_at_collateral(self):
        """Test that a fee larger than the locked collateral takes only what is there."""
        self.protocol.pool.deposit("USD1", "bob", 1000 * WAD)
        self.ledger.open("USD1", "bob", WAD, 100 * WAD)

        self.advance(10 * ONE_YEAR_IN_SECONDS)
        self.assertEqual(self.ledger.settle_fee("USD1", "bob"), WAD)
        self.assertEqual(self.ledger.collateral_of("USD1", "bob"), 0)


if __name__ == '__main__':
    unittest.main()
