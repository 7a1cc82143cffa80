"""
DSC Protocol model: an overcollateralized stablecoin with vaults,
protocol fees and incentive-driven liquidations.
"""

from .clock import SimulationClock
from .collateral_pool import CollateralPool
from .collateral_registry import CollateralConfig, CollateralRegistry, implied_ocr, threshold_from_ocr
from .config import DEFAULT_CONFIG, EngineConfig
from .dsc_engine import DSCEngine
from .dsc_token import DSCToken
from .events import EventLog, LiquidationOutcome
from .liquidation_engine import LiquidationEngine, LiquidationResult
from .price_feed import PriceFeed
from .valuation import ValuationService
from .vault_ledger import AbsorbedVault, Vault, VaultLedger

__all__ = [
    "AbsorbedVault",
    "CollateralConfig",
    "CollateralPool",
    "CollateralRegistry",
    "DEFAULT_CONFIG",
    "DSCEngine",
    "DSCToken",
    "EngineConfig",
    "EventLog",
    "LiquidationEngine",
    "LiquidationOutcome",
    "LiquidationResult",
    "PriceFeed",
    "SimulationClock",
    "ValuationService",
    "Vault",
    "VaultLedger",
    "implied_ocr",
    "threshold_from_ocr",
]
