"""
Tests for the engine configuration, clock and event log of the DSC protocol.
"""

import unittest

from protocol_fixture import WAD, ProtocolFixture
from dsc_protocol.clock import SimulationClock
from dsc_protocol.config import DEFAULT_CONFIG, EngineConfig
from dsc_protocol.errors import BelowMinimumDebt
from dsc_protocol.events import DebtMinted, EventLog


class TestEngineConfig(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(DEFAULT_CONFIG.min_debt, 100 * WAD)
        self.assertEqual(DEFAULT_CONFIG.oracle_staleness_window, 7200)
        self.assertEqual(DEFAULT_CONFIG.protocol_fee_apr, 10**16)

    def test_overrides(self):
        config = DEFAULT_CONFIG.with_overrides(min_debt=500 * WAD)
        self.assertEqual(config.min_debt, 500 * WAD)
        self.assertEqual(DEFAULT_CONFIG.min_debt, 100 * WAD)

    def test_validation(self):
        with self.assertRaises(ValueError):
            EngineConfig(discount_start_rate=10**16, discount_end_rate=2 * 10**16)
        with self.assertRaises(ValueError):
            EngineConfig(min_size_reward=10 * WAD, max_size_reward=WAD)

    def test_engine_uses_config(self):
        """Test that the engine enforces an overridden minimum debt."""
        protocol = ProtocolFixture(config=DEFAULT_CONFIG.with_overrides(min_debt=500 * WAD))
        with self.assertRaises(BelowMinimumDebt):
            protocol.open_vault("alice", 10 * WAD, 400 * WAD)
        protocol.open_vault("alice", 10 * WAD, 500 * WAD)

    def test_staleness_window_override(self):
        protocol = ProtocolFixture(config=DEFAULT_CONFIG.with_overrides(oracle_staleness_window=60))
        self.assertEqual(protocol.price_feed.staleness_window, 60)


class TestSimulationClock(unittest.TestCase):
    def test_advance(self):
        clock = SimulationClock(100)
        self.assertEqual(clock.advance(50), 150)
        self.assertEqual(clock.set_time(200), 200)

    def test_cannot_go_backwards(self):
        clock = SimulationClock(100)
        with self.assertRaises(ValueError):
            clock.advance(-1)
        with self.assertRaises(ValueError):
            clock.set_time(99)


class TestEventLog(unittest.TestCase):
    def test_queries(self):
        log = EventLog()
        self.assertIsNone(log.last())

        log.emit(DebtMinted("ETH", "alice", 1))
        log.emit(DebtMinted("ETH", "bob", 2))

        self.assertEqual(len(log), 2)
        self.assertEqual(log.last(DebtMinted).owner, "bob")
        self.assertEqual([e.amount for e in log.of_type(DebtMinted)], [1, 2])


if __name__ == '__main__':
    unittest.main()
