"""
Price Feed Model for the DSC Protocol.

This module simulates the Chainlink-style price oracles the protocol reads.
Each feed reports a price with its own decimal count and the time of its last
update. Reads fail once a feed has not been updated within the freshness
window; there is no fallback price.
"""

import logging
from dataclasses import dataclass

from .constants import CANONICAL_DECIMALS, ORACLE_STALENESS_WINDOW
from .errors import InvalidPrice, StaleOracle

logger = logging.getLogger(__name__)


@dataclass
class PriceRound:
    """Latest answer reported by a feed."""
    answer: int      # Price scaled by 10**decimals
    decimals: int    # Decimal count of the answer
    updated_at: int  # Timestamp of the update


class PriceFeed:
    """
    Simulates a set of price feeds, keyed by feed id.
    """

    def __init__(self, clock, staleness_window=ORACLE_STALENESS_WINDOW):
        self.clock = clock
        self.staleness_window = staleness_window
        self.rounds = {}  # feed_id -> PriceRound

    def set_price(self, feed_id, answer, decimals=8, updated_at=None):
        """
        Publishes a new answer for a feed.

        Args:
            feed_id: Identifier of the feed
            answer: Price scaled by 10**decimals
            decimals: Decimal count of the answer (at most 18)
            updated_at: Update timestamp, defaults to the current time

        Returns:
            The stored PriceRound
        """
        if decimals < 0 or decimals > CANONICAL_DECIMALS:
            raise ValueError(f"Feed decimals must be between 0 and {CANONICAL_DECIMALS}")
        if updated_at is None:
            updated_at = self.clock.now()

        price_round = PriceRound(answer=int(answer), decimals=decimals, updated_at=updated_at)
        self.rounds[feed_id] = price_round
        return price_round

    def latest_price(self, feed_id):
        """
        Returns the latest (answer, decimals, updated_at) of a feed.

        Raises:
            InvalidPrice: If the feed is unknown or its answer is not positive
            StaleOracle: If the last update is older than the staleness window
        """
        price_round = self.rounds.get(feed_id)
        if price_round is None:
            raise InvalidPrice(f"Unknown price feed: {feed_id}")
        if price_round.answer <= 0:
            raise InvalidPrice(f"Non-positive price from {feed_id}: {price_round.answer}")

        now = self.clock.now()
        if now - price_round.updated_at > self.staleness_window:
            logger.warning(
                "Stale price feed",
                extra={"event": "oracle.stale", "feed_id": feed_id, "updated_at": price_round.updated_at},
            )
            raise StaleOracle(feed_id, price_round.updated_at, now)

        return price_round.answer, price_round.decimals, price_round.updated_at

    def decimals(self, feed_id):
        """Returns the decimal count of a feed without a freshness check."""
        price_round = self.rounds.get(feed_id)
        if price_round is None:
            raise InvalidPrice(f"Unknown price feed: {feed_id}")
        return price_round.decimals
