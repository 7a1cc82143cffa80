"""
Collateral Registry Model for the DSC Protocol.

This module holds the configuration of every approved collateral type: the
token it wraps, the oracle feed that prices it, its decimal count and the
trusted-value threshold. The threshold is the single risk parameter of a
collateral type: it sets both the maximum leverage and the liquidation
trigger. The registry also keeps the aggregate debt minted against each type.
"""

import logging
from dataclasses import dataclass

from .constants import DECIMAL_PRECISION
from .errors import (
    CollateralAlreadyRegistered,
    CollateralHasDebt,
    InsufficientDebt,
    UnsupportedCollateral,
)

logger = logging.getLogger(__name__)


def threshold_from_ocr(ocr_percent: int) -> int:
    """
    Converts a target overcollateralization ratio into a trusted-value threshold.

    An OCR of 170% means at most 1/1.7 of the collateral value is trusted to
    absorb losses: threshold_from_ocr(170) == 588235294117647058.
    """
    if ocr_percent <= 100:
        raise ValueError(f"Overcollateralization ratio must exceed 100%, got {ocr_percent}%")
    return (DECIMAL_PRECISION * 100) // ocr_percent


def implied_ocr(threshold: int) -> int:
    """Returns the overcollateralization ratio (18 decimals) encoded by a threshold."""
    return DECIMAL_PRECISION * DECIMAL_PRECISION // threshold


@dataclass
class CollateralConfig:
    """
    Configuration of one collateral type.

    Everything except total_debt is fixed once registered.
    """
    collateral_id: str
    token: str           # Token address, or NATIVE_ASSET for Ether
    threshold: int       # Trusted fraction of collateral value, 18 decimals
    price_feed_id: str   # Oracle feed pricing the token in USD
    token_decimals: int  # Decimal count of the token
    total_debt: int = 0  # Aggregate DSC debt across all vaults of this type


class CollateralRegistry:
    """
    Keeps the approved collateral types.
    """

    def __init__(self):
        # Insertion-ordered; removal is O(1)
        self.collaterals = {}  # collateral_id -> CollateralConfig

    def __contains__(self, collateral_id):
        return collateral_id in self.collaterals

    def collateral_ids(self):
        """Returns the registered collateral ids in registration order."""
        return list(self.collaterals)

    def get(self, collateral_id) -> CollateralConfig:
        """
        Returns the config of a collateral type.

        Raises:
            UnsupportedCollateral: If the type is not registered
        """
        config = self.collaterals.get(collateral_id)
        if config is None:
            raise UnsupportedCollateral(collateral_id)
        return config

    def add(self, config: CollateralConfig) -> CollateralConfig:
        """
        Registers a new collateral type.

        Raises:
            CollateralAlreadyRegistered: If the id is already in use
            ValueError: If the threshold or decimals are out of range
        """
        if config.collateral_id in self.collaterals:
            raise CollateralAlreadyRegistered(f"Collateral {config.collateral_id} already registered")
        if not 0 < config.threshold <= DECIMAL_PRECISION:
            raise ValueError(f"Threshold must be in (0, 1e18], got {config.threshold}")
        if config.token_decimals < 0:
            raise ValueError("Token decimals cannot be negative")

        config.total_debt = 0
        self.collaterals[config.collateral_id] = config

        logger.info(
            "Collateral type registered",
            extra={"event": "registry.add", "collateral_id": config.collateral_id, "threshold": config.threshold},
        )
        return config

    def remove(self, collateral_id):
        """
        Removes a collateral type.

        Raises:
            UnsupportedCollateral: If the type is not registered
            CollateralHasDebt: If open vaults still owe debt against it
        """
        config = self.get(collateral_id)
        if config.total_debt > 0:
            raise CollateralHasDebt(
                f"Cannot remove {collateral_id}: {config.total_debt} debt outstanding"
            )
        del self.collaterals[collateral_id]

        logger.info("Collateral type removed", extra={"event": "registry.remove", "collateral_id": collateral_id})

    def increase_debt(self, collateral_id, amount):
        """Adds to the aggregate debt of a collateral type."""
        self.get(collateral_id).total_debt += amount

    def decrease_debt(self, collateral_id, amount):
        """Subtracts from the aggregate debt of a collateral type."""
        config = self.get(collateral_id)
        if amount > config.total_debt:
            raise InsufficientDebt(
                f"Aggregate debt of {collateral_id} would become negative: {config.total_debt} < {amount}"
            )
        config.total_debt -= amount
