"""
Valuation Service for the DSC Protocol.

Converts collateral token amounts into USD values and back, using the oracle
price and normalizing every USD value to the canonical 18-decimal fixed point
representation regardless of the token or feed decimals. Multiplications are
always done before divisions to keep precision.
"""

from .constants import CANONICAL_DECIMALS


class ValuationService:
    """
    Prices collateral using the registry configuration and the price feed.
    """

    def __init__(self, registry, price_feed, vault_ledger=None):
        self.registry = registry
        self.price_feed = price_feed
        # Linked after construction, the ledger also depends on this service
        self.vault_ledger = vault_ledger

        # collateral_id -> oracle decimals, fetched once
        self.oracle_decimals = {}

    def _latest_price(self, config):
        answer, decimals, _ = self.price_feed.latest_price(config.price_feed_id)
        self.oracle_decimals.setdefault(config.collateral_id, decimals)
        return answer

    def _decimals_of(self, collateral_id):
        if collateral_id not in self.oracle_decimals:
            config = self.registry.get(collateral_id)
            self.oracle_decimals[collateral_id] = self.price_feed.decimals(config.price_feed_id)
        return self.oracle_decimals[collateral_id]

    def raw_usd_value(self, collateral_id, amount):
        """
        Returns the USD value of a token amount in the oracle's decimal scale.

        Raises:
            StaleOracle: If the feed is stale
        """
        config = self.registry.get(collateral_id)
        price = self._latest_price(config)
        return amount * price // 10**config.token_decimals

    def scale_to_canonical(self, collateral_id, raw_value):
        """Scales a value in oracle decimals up to 18 decimals."""
        decimals = self._decimals_of(collateral_id)
        if decimals < CANONICAL_DECIMALS:
            return raw_value * 10**(CANONICAL_DECIMALS - decimals)
        return raw_value

    def collateral_usd_value(self, collateral_id, amount):
        """Returns the USD value of a token amount in 18 decimals."""
        return self.scale_to_canonical(collateral_id, self.raw_usd_value(collateral_id, amount))

    def usd_value_of(self, collateral_id, owner):
        """Returns the USD value of a vault's locked collateral in 18 decimals."""
        collateral = self.vault_ledger.collateral_of(collateral_id, owner)
        return self.collateral_usd_value(collateral_id, collateral)

    def token_amount_for(self, collateral_id, usd_value):
        """
        Converts an 18-decimal USD value into an amount of collateral tokens.

        Used to turn fees, penalties and liquidation payouts into deductible
        collateral. Rounds down.
        """
        config = self.registry.get(collateral_id)
        price = self._latest_price(config)
        scaled_price = self.scale_to_canonical(collateral_id, price)
        return usd_value * 10**config.token_decimals // scaled_price
