"""
Vault Ledger Model for the DSC Protocol.

This module simulates the per-(collateral, owner) positions of the protocol.
A vault pairs locked collateral with outstanding DSC debt and remembers when
its protocol fee was last settled.

The ledger is responsible for:
1. Moving collateral between the owner's unlocked balance and the vault
2. Keeping the aggregate debt counter of every collateral type in step with
   the vault debts
3. Settling the protocol fee, charged on locked collateral, before any debt
   or collateral change
4. Evaluating vault health factors
5. Recording vaults absorbed by the protocol as bad debt

Health checks are left to the caller: the DSC engine decides when an action
must leave the vault solvent and rolls the whole action back when it does not.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .config import DEFAULT_CONFIG
from .constants import DECIMAL_PRECISION, MAX_HEALTH_FACTOR, MIN_HEALTH_FACTOR
from .errors import (
    InsufficientCollateral,
    InsufficientDebt,
    InvalidAmount,
    UnderCollateralized,
    VaultAlreadyExists,
    VaultNotFound,
)
from .events import FeeSettled
from .fees import liquidation_penalty, protocol_fee

logger = logging.getLogger(__name__)


@dataclass
class Vault:
    """
    A user's position against one collateral type.
    """
    collateral_id: str
    owner: str
    collateral: int = 0               # Locked collateral, token units
    debt: int = 0                     # Outstanding DSC debt
    last_fee_settlement: int = 0      # Timestamp of the last fee settlement
    underwater_since: Optional[int] = None  # First time seen below health 1.0


@dataclass
class AbsorbedVault:
    """
    A vault taken over by the protocol because its collateral could not cover
    the base repayment of a liquidation.
    """
    collateral_id: str
    former_owner: str
    collateral: int = 0  # Residual collateral left in the vault
    debt: int = 0        # Debt the liquidation did not recover
    absorbed_at: int = 0


class VaultLedger:
    """
    Owns every vault and absorbed vault of the protocol.
    """

    def __init__(self, registry, valuation, collateral_pool, clock, events, config=DEFAULT_CONFIG):
        self.registry = registry
        self.valuation = valuation
        self.collateral_pool = collateral_pool
        self.clock = clock
        self.events = events
        self.config = config

        self.vaults: Dict[Tuple[str, str], Vault] = {}
        self.absorbed: Dict[Tuple[str, str], AbsorbedVault] = {}

        # Collateral swept into the protocol reserve, per collateral type
        self.accrued_fees: Dict[str, int] = {}
        self.accrued_penalties: Dict[str, int] = {}

    # --- Getter functions ---

    def has_vault(self, collateral_id, owner):
        return (collateral_id, owner) in self.vaults

    def get_vault(self, collateral_id, owner) -> Vault:
        """
        Returns the vault of owner for a collateral type.

        Raises:
            VaultNotFound: If the owner has no vault for this collateral
        """
        vault = self.vaults.get((collateral_id, owner))
        if vault is None:
            raise VaultNotFound(f"No {collateral_id} vault for {owner}")
        return vault

    def collateral_of(self, collateral_id, owner):
        """Returns the locked collateral of a vault, 0 if there is none."""
        vault = self.vaults.get((collateral_id, owner))
        return vault.collateral if vault else 0

    def debt_of(self, collateral_id, owner):
        """Returns the debt of a vault, 0 if there is none."""
        vault = self.vaults.get((collateral_id, owner))
        return vault.debt if vault else 0

    def vaults_of(self, collateral_id):
        """Returns all vaults backed by a collateral type."""
        return [v for (cid, _), v in self.vaults.items() if cid == collateral_id]

    def sum_vault_debt(self, collateral_id):
        """Sums the debt of all vaults of a collateral type."""
        return sum(v.debt for v in self.vaults_of(collateral_id))

    # --- Health ---

    def health_factor(self, collateral_id, owner):
        """
        Computes the health factor of a vault.

        The collateral value is cut down to its trusted part using the
        collateral threshold, then divided by the debt:

            trusted = collateral_usd * threshold / 1e18
            health_factor = trusted * 1e18 / debt

        A vault without debt cannot be liquidated and reports the maximum
        health factor without reading the oracle.

        Returns:
            Health factor in 18 decimals; >= 1e18 is solvent
        """
        debt = self.debt_of(collateral_id, owner)
        if debt == 0:
            return MAX_HEALTH_FACTOR

        config = self.registry.get(collateral_id)
        collateral_usd = self.valuation.usd_value_of(collateral_id, owner)
        trusted_value = collateral_usd * config.threshold // DECIMAL_PRECISION
        return trusted_value * DECIMAL_PRECISION // debt

    def is_healthy(self, collateral_id, owner):
        return self.health_factor(collateral_id, owner) >= MIN_HEALTH_FACTOR

    def require_healthy(self, collateral_id, owner):
        """
        Raises:
            UnderCollateralized: If the vault health factor is below 1.0
        """
        health_factor = self.health_factor(collateral_id, owner)
        if health_factor < MIN_HEALTH_FACTOR:
            raise UnderCollateralized(health_factor)
        return health_factor

    # --- Fee settlement ---

    def settle_fee(self, collateral_id, owner):
        """
        Charges the protocol fee accrued since the last settlement.

        The USD fee is converted into collateral and taken from the vault's
        locked collateral, which ties unpaid fees to the health factor. The
        settlement time always moves to now, even when no fee is due.

        Returns:
            The fee charged, in collateral tokens
        """
        vault = self.get_vault(collateral_id, owner)
        now = self.clock.now()
        elapsed = now - vault.last_fee_settlement

        fee_usd = protocol_fee(vault.debt, elapsed, self.config.protocol_fee_apr)
        fee_tokens = 0
        if fee_usd > 0:
            fee_tokens = min(self.valuation.token_amount_for(collateral_id, fee_usd), vault.collateral)
            vault.collateral -= fee_tokens
            self.accrued_fees[collateral_id] = self.accrued_fees.get(collateral_id, 0) + fee_tokens
            self.events.emit(FeeSettled(collateral_id, owner, fee_usd, fee_tokens))
            logger.debug(
                "Protocol fee settled",
                extra={"event": "vault.fee", "collateral_id": collateral_id, "owner": owner, "elapsed": elapsed},
            )

        vault.last_fee_settlement = now
        return fee_tokens

    # --- Vault mutations ---

    def open(self, collateral_id, owner, collateral_amount, debt_amount):
        """
        Creates a vault, locking collateral from the owner's unlocked balance.

        The caller must check the minimum debt and the resulting health.

        Raises:
            VaultAlreadyExists: If the owner already has a vault for this collateral
            InsufficientCollateral: If the unlocked balance is too low
        """
        if collateral_amount < 0 or debt_amount < 0:
            raise InvalidAmount("Vault amounts cannot be negative")
        if self.has_vault(collateral_id, owner):
            raise VaultAlreadyExists(f"{owner} already has a {collateral_id} vault")
        self.registry.get(collateral_id)

        vault = Vault(
            collateral_id=collateral_id,
            owner=owner,
            last_fee_settlement=self.clock.now(),
        )
        self.vaults[(collateral_id, owner)] = vault
        self._lock(vault, collateral_amount, debt_amount)
        return vault

    def expand(self, collateral_id, owner, collateral_amount, debt_amount):
        """
        Adds collateral and/or debt to an existing vault, settling the pending
        fee first so the old debt is charged at the old size.
        """
        if collateral_amount < 0 or debt_amount < 0:
            raise InvalidAmount("Vault amounts cannot be negative")
        vault = self.get_vault(collateral_id, owner)
        self.settle_fee(collateral_id, owner)
        self._lock(vault, collateral_amount, debt_amount)
        return vault

    def _lock(self, vault, collateral_amount, debt_amount):
        if collateral_amount > 0:
            self.collateral_pool.debit(vault.collateral_id, vault.owner, collateral_amount)
            vault.collateral += collateral_amount
        if debt_amount > 0:
            vault.debt += debt_amount
            self.registry.increase_debt(vault.collateral_id, debt_amount)
        vault.last_fee_settlement = self.clock.now()

    def shrink_debt(self, collateral_id, owner, amount):
        """
        Settles the pending fee, then reduces the vault debt.

        Raises:
            InsufficientDebt: If amount exceeds the vault debt
        """
        if amount <= 0:
            raise InvalidAmount("Debt reduction must be greater than zero")
        vault = self.get_vault(collateral_id, owner)
        self.settle_fee(collateral_id, owner)

        if amount > vault.debt:
            raise InsufficientDebt(f"Cannot repay {amount}, vault debt is {vault.debt}")
        vault.debt -= amount
        self.registry.decrease_debt(collateral_id, amount)
        vault.last_fee_settlement = self.clock.now()
        return vault

    def shrink_collateral(self, collateral_id, owner, amount):
        """
        Settles the pending fee, then moves locked collateral back to the
        owner's unlocked balance. The caller must re-check health.

        Raises:
            InsufficientCollateral: If amount exceeds the locked collateral
        """
        if amount <= 0:
            raise InvalidAmount("Collateral reduction must be greater than zero")
        self.settle_fee(collateral_id, owner)
        self.release_collateral(collateral_id, owner, amount, owner)
        return self.get_vault(collateral_id, owner)

    def release_collateral(self, collateral_id, owner, amount, recipient):
        """Moves locked collateral of a vault to recipient's unlocked balance."""
        vault = self.get_vault(collateral_id, owner)
        if amount > vault.collateral:
            raise InsufficientCollateral(
                f"Cannot release {amount}, vault holds {vault.collateral}"
            )
        if amount == 0:
            return 0
        vault.collateral -= amount
        self.collateral_pool.credit(collateral_id, recipient, amount)
        return amount

    def seize_penalty(self, collateral_id, owner):
        """
        Takes the liquidation penalty on the whole vault debt out of the
        locked collateral and sweeps it into the protocol reserve.

        Returns:
            The penalty charged, in collateral tokens
        """
        vault = self.get_vault(collateral_id, owner)
        penalty_usd = liquidation_penalty(vault.debt, self.config.liquidation_penalty_rate)
        if penalty_usd == 0:
            return 0

        penalty_tokens = min(self.valuation.token_amount_for(collateral_id, penalty_usd), vault.collateral)
        vault.collateral -= penalty_tokens
        self.accrued_penalties[collateral_id] = self.accrued_penalties.get(collateral_id, 0) + penalty_tokens
        return penalty_tokens

    # --- Lifecycle ---

    def delete_vault(self, collateral_id, owner):
        """Removes a vault, and with it its underwater marker."""
        return self.vaults.pop((collateral_id, owner))

    def close_if_empty(self, collateral_id, owner):
        """Deletes a vault whose debt and collateral are both zero."""
        vault = self.vaults.get((collateral_id, owner))
        if vault is not None and vault.debt == 0 and vault.collateral == 0:
            self.delete_vault(collateral_id, owner)
            return True
        return False

    def absorb(self, collateral_id, owner, unrecovered_debt):
        """
        Replaces a vault by an absorbed record owned by the protocol.

        The residual collateral stays in custody under the absorbed record.
        Repeated absorptions of the same owner's vaults accumulate.
        """
        vault = self.delete_vault(collateral_id, owner)
        key = (collateral_id, owner)
        record = self.absorbed.get(key)
        if record is None:
            record = AbsorbedVault(collateral_id=collateral_id, former_owner=owner)
            self.absorbed[key] = record

        record.collateral += vault.collateral
        record.debt += unrecovered_debt
        record.absorbed_at = self.clock.now()

        logger.warning(
            "Vault absorbed as bad debt",
            extra={"event": "vault.absorbed", "collateral_id": collateral_id, "owner": owner,
                   "unrecovered_debt": unrecovered_debt},
        )
        return record

    def get_absorbed_vault(self, collateral_id, owner) -> Optional[AbsorbedVault]:
        return self.absorbed.get((collateral_id, owner))
