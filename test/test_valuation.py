"""
Unit tests for the price feed and valuation service of the DSC protocol.
"""

import unittest

from protocol_fixture import ADMIN, WAD, ProtocolFixture
from dsc_protocol.collateral_registry import threshold_from_ocr
from dsc_protocol.errors import InvalidPrice, OracleError, StaleOracle, UnsupportedCollateral


class TestPriceFeed(unittest.TestCase):
    def setUp(self):
        self.protocol = ProtocolFixture(eth_price=200)
        self.feed = self.protocol.price_feed

    def test_latest_price(self):
        answer, decimals, updated_at = self.feed.latest_price("ETH/USD")
        self.assertEqual(answer, 200 * 10**8)
        self.assertEqual(decimals, 8)
        self.assertEqual(updated_at, self.protocol.clock.now())

    def test_fresh_at_window_edge(self):
        """Test that a feed is still fresh exactly at the end of the window."""
        self.protocol.clock.advance(7200)
        self.feed.latest_price("ETH/USD")

    def test_stale_after_window(self):
        updated_at = self.protocol.clock.now()
        self.protocol.clock.advance(7201)

        with self.assertRaises(StaleOracle) as context:
            self.feed.latest_price("ETH/USD")
        self.assertEqual(context.exception.feed_id, "ETH/USD")
        self.assertEqual(context.exception.updated_at, updated_at)
        self.assertIsInstance(context.exception, OracleError)

    def test_unknown_feed(self):
        with self.assertRaises(InvalidPrice):
            self.feed.latest_price("DOGE/USD")

    def test_non_positive_price(self):
        self.feed.set_price("ETH/USD", 0, 8)
        with self.assertRaises(InvalidPrice):
            self.feed.latest_price("ETH/USD")

    def test_decimals_bounds(self):
        with self.assertRaises(ValueError):
            self.feed.set_price("ETH/USD", 1, 19)


class TestValuationService(unittest.TestCase):
    def setUp(self):
        self.protocol = ProtocolFixture(eth_price=200)
        self.valuation = self.protocol.valuation

    def test_eighteen_decimal_token(self):
        self.assertEqual(self.valuation.collateral_usd_value("ETH", WAD), 200 * WAD)
        self.assertEqual(self.valuation.collateral_usd_value("ETH", WAD // 4), 50 * WAD)

    def test_six_decimal_token(self):
        """Test that a 6-decimal stablecoin is normalized to 18 decimals."""
        self.protocol.add_collateral("USDC", 1, 110, token_decimals=6)
        self.assertEqual(self.valuation.collateral_usd_value("USDC", 10**6), WAD)
        self.assertEqual(self.valuation.token_amount_for("USDC", 250 * WAD), 250 * 10**6)

    def test_eighteen_decimal_feed(self):
        """Test that a feed already in 18 decimals is not scaled again."""
        self.protocol.price_feed.set_price("WBTC/USD", 30_000 * WAD, 18)
        self.protocol.engine.add_collateral_type(
            ADMIN, "WBTC", "WBTC", threshold_from_ocr(150), "WBTC/USD", 8
        )
        self.assertEqual(self.valuation.collateral_usd_value("WBTC", 10**8), 30_000 * WAD)
        self.assertEqual(self.valuation.token_amount_for("WBTC", 15_000 * WAD), 5 * 10**7)

    def test_token_amount_rounds_down(self):
        self.protocol.set_price("ETH", 140)
        self.assertEqual(self.valuation.token_amount_for("ETH", WAD), 7142857142857142)

    def test_non_positive_price_rejected_by_feed(self):
        self.protocol.set_price("ETH", 0)
        with self.assertRaises(InvalidPrice):
            self.valuation.token_amount_for("ETH", WAD)

    def test_oracle_decimals_cached(self):
        self.valuation.collateral_usd_value("ETH", WAD)
        self.assertEqual(self.valuation.oracle_decimals["ETH"], 8)

    def test_unsupported_collateral(self):
        with self.assertRaises(UnsupportedCollateral):
            self.valuation.collateral_usd_value("DOGE", WAD)

    def test_stale_price_propagates(self):
        self.protocol.clock.advance(7201)
        with self.assertRaises(StaleOracle):
            self.valuation.collateral_usd_value("ETH", WAD)


if __name__ == '__main__':
    unittest.main()
