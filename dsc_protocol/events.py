"""
Event Model for the DSC Protocol.

This module simulates the events the protocol emits. Events are the audit
trail external monitors (keepers, risk dashboards) rely on: each carries the
collateral identifier, the account concerned and the amounts involved.
"""

import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class LiquidationOutcome(Enum):
    """
    Possible results of a liquidation.

    The outcome depends on how much collateral is left in the vault once the
    penalty has been taken and the debt repaid.
    """
    FULL_REWARD = "full_reward"        # Liquidator receives base repayment plus full reward
    PARTIAL_REWARD = "partial_reward"  # Liquidator receives all remaining collateral
    BAD_DEBT = "bad_debt"              # Protocol absorbs the vault, liquidator is refunded in DSC


@dataclass(frozen=True)
class CollateralTypeAdded:
    collateral_id: str
    token: str
    threshold: int
    price_feed_id: str
    token_decimals: int


@dataclass(frozen=True)
class CollateralTypeRemoved:
    collateral_id: str


@dataclass(frozen=True)
class CollateralDeposited:
    collateral_id: str
    account: str
    amount: int


@dataclass(frozen=True)
class CollateralWithdrawn:
    collateral_id: str
    account: str
    amount: int


@dataclass(frozen=True)
class DebtMinted:
    collateral_id: str
    owner: str
    amount: int


@dataclass(frozen=True)
class DebtBurned:
    collateral_id: str
    owner: str
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed:
    collateral_id: str
    owner: str
    amount: int


@dataclass(frozen=True)
class FeeSettled:
    collateral_id: str
    owner: str
    fee_usd: int
    fee_tokens: int


@dataclass(frozen=True)
class VaultMarkedUnderwater:
    collateral_id: str
    owner: str
    timestamp: int
    health_factor: int


@dataclass(frozen=True)
class VaultLiquidated:
    collateral_id: str
    owner: str
    liquidator: str
    outcome: LiquidationOutcome
    debt_repaid: int
    collateral_paid: int
    reward_usd: int


@dataclass(frozen=True)
class LiquidationSurplusReturned:
    collateral_id: str
    owner: str
    amount: int


class EventLog:
    """
    Append-only record of emitted events.

    The log is part of the engine state, so events emitted by a call that is
    later rolled back disappear together with the rest of its effects.
    """

    def __init__(self):
        self.events: List[object] = []

    def emit(self, event):
        """Records an event and logs it."""
        self.events.append(event)
        logger.info(
            type(event).__name__,
            extra={"event": type(event).__name__, **asdict(event)},
        )
        return event

    def of_type(self, event_type) -> List[object]:
        """Returns all recorded events of the given type, oldest first."""
        return [e for e in self.events if isinstance(e, event_type)]

    def last(self, event_type=None) -> Optional[object]:
        """Returns the most recent event, optionally restricted to one type."""
        for event in reversed(self.events):
            if event_type is None or isinstance(event, event_type):
                return event
        return None

    def __len__(self):
        return len(self.events)
