"""
DSC Engine Model for the DSC Protocol.

This module simulates the DSCEngine contract, the entry point for every user
action. The engine sequences each action the same way:

    fee settlement -> vault mutation -> health check -> token mint/burn

and commits it only if every step succeeds. Any failure, whether a rejected
validation, a broken health factor, a stale oracle or a refused token
operation, restores the state the protocol had before the call.

Re-entering the engine while a call is in flight is rejected: intermediate
states (collateral debited but debt not yet credited) must never be observed.
"""

import copy
import logging
from contextlib import contextmanager

from .collateral_registry import CollateralConfig
from .config import DEFAULT_CONFIG
from .errors import (
    BelowMinimumDebt,
    InvalidAmount,
    NotOwner,
    ReentrantCall,
)
from .events import (
    CollateralDeposited,
    CollateralRedeemed,
    CollateralTypeAdded,
    CollateralTypeRemoved,
    CollateralWithdrawn,
    DebtBurned,
    DebtMinted,
)

logger = logging.getLogger(__name__)


class DSCEngine:
    """
    Orchestrates vault actions, liquidations and collateral administration.

    The engine owns the DSC token: it is the only address allowed to mint and
    burn. The engine owner is the only address allowed to add and remove
    collateral types.
    """

    def __init__(self, owner, registry, valuation, vault_ledger, liquidation_engine,
                 collateral_pool, dsc_token, clock, events,
                 address="DSCEngine", config=DEFAULT_CONFIG):
        self.owner = owner
        self.address = address
        self.registry = registry
        self.valuation = valuation
        self.vault_ledger = vault_ledger
        self.liquidation_engine = liquidation_engine
        self.collateral_pool = collateral_pool
        self.dsc_token = dsc_token
        self.clock = clock
        self.events = events
        self.config = config

        # Set while an action is in flight
        self._entered = False

    # --- Transactions ---

    def _stateful_components(self):
        return [
            self.registry,
            self.valuation,
            self.vault_ledger,
            self.collateral_pool,
            self.dsc_token,
            self.events,
        ]

    def _snapshot(self):
        components = self._stateful_components()
        # Links between components and the injected transport stay shared;
        # only the components' own data is copied
        shared = components + [self, self.liquidation_engine, self.clock,
                               self.valuation.price_feed, self.config, self.collateral_pool.transport]
        memo = {id(obj): obj for obj in shared}
        return [(obj, copy.deepcopy(obj.__dict__, memo)) for obj in components]

    @staticmethod
    def _restore(snapshot):
        for obj, state in snapshot:
            obj.__dict__.clear()
            obj.__dict__.update(state)

    @contextmanager
    def _transaction(self, action):
        """
        Runs one action atomically behind the re-entrancy guard.
        """
        if self._entered:
            raise ReentrantCall(f"Re-entrant call to {action}")

        self._entered = True
        snapshot = self._snapshot()
        try:
            yield
        except Exception as exc:
            self._restore(snapshot)
            logger.warning(
                "Action rolled back",
                extra={"event": "engine.rollback", "action": action, "error": type(exc).__name__},
            )
            raise
        finally:
            self._entered = False

    # --- Validation ---

    def _only_owner(self, caller):
        if caller != self.owner:
            raise NotOwner(f"{caller} is not the engine owner")

    @staticmethod
    def _require_positive(amount, what="Amount"):
        if amount <= 0:
            raise InvalidAmount(f"{what} must be greater than zero")

    # --- Administration ---

    def add_collateral_type(self, caller, collateral_id, token, threshold, price_feed_id, token_decimals):
        """
        Registers a new collateral type.

        Args:
            caller: Must be the engine owner
            collateral_id: Identifier of the collateral type
            token: Token address, or NATIVE_ASSET for Ether
            threshold: Trusted-value threshold, see threshold_from_ocr
            price_feed_id: Oracle feed pricing the token in USD
            token_decimals: Decimal count of the token

        Returns:
            The stored CollateralConfig
        """
        with self._transaction("add_collateral_type"):
            self._only_owner(caller)
            config = self.registry.add(CollateralConfig(
                collateral_id=collateral_id,
                token=token,
                threshold=threshold,
                price_feed_id=price_feed_id,
                token_decimals=token_decimals,
            ))
            self.events.emit(CollateralTypeAdded(collateral_id, token, threshold, price_feed_id, token_decimals))
            return config

    def remove_collateral_type(self, caller, collateral_id):
        """Removes a collateral type that no longer backs any debt."""
        with self._transaction("remove_collateral_type"):
            self._only_owner(caller)
            self.registry.remove(collateral_id)
            self.valuation.oracle_decimals.pop(collateral_id, None)
            self.events.emit(CollateralTypeRemoved(collateral_id))

    # --- Custody ---

    def deposit_collateral(self, caller, collateral_id, amount):
        """Deposits collateral into the caller's unlocked balance."""
        with self._transaction("deposit_collateral"):
            self._deposit(caller, collateral_id, amount)

    def _deposit(self, caller, collateral_id, amount):
        self._require_positive(amount, "Deposit")
        self.registry.get(collateral_id)
        self.collateral_pool.deposit(collateral_id, caller, amount)
        self.events.emit(CollateralDeposited(collateral_id, caller, amount))

    def withdraw_collateral(self, caller, collateral_id, amount):
        """Sends unlocked collateral back to the caller."""
        with self._transaction("withdraw_collateral"):
            self._withdraw(caller, collateral_id, amount)

    def _withdraw(self, caller, collateral_id, amount):
        self._require_positive(amount, "Withdrawal")
        self.collateral_pool.transfer_out(collateral_id, caller, amount)
        self.events.emit(CollateralWithdrawn(collateral_id, caller, amount))

    # --- Debt ---

    def mint_dsc(self, caller, collateral_id, collateral_amount, debt_amount):
        """
        Locks collateral from the caller's unlocked balance and mints DSC.

        The first mint against a collateral type opens the caller's vault and
        must carry at least the minimum debt; later mints expand the vault and
        must leave its debt at or above that minimum.

        Args:
            caller: Vault owner
            collateral_id: Collateral type
            collateral_amount: Collateral to lock, may be 0 when expanding
            debt_amount: DSC to mint

        Raises:
            BelowMinimumDebt: If the vault debt would be under the minimum
            UnderCollateralized: If the vault would be left unhealthy
        """
        with self._transaction("mint_dsc"):
            self._mint(caller, collateral_id, collateral_amount, debt_amount)

    def _mint(self, caller, collateral_id, collateral_amount, debt_amount):
        self._require_positive(debt_amount, "Debt")
        if collateral_amount < 0:
            raise InvalidAmount("Collateral amount cannot be negative")
        self.registry.get(collateral_id)

        existing_debt = self.vault_ledger.debt_of(collateral_id, caller)
        if existing_debt + debt_amount < self.config.min_debt:
            raise BelowMinimumDebt(
                f"Vault debt must be at least {self.config.min_debt}, got {existing_debt + debt_amount}"
            )

        if self.vault_ledger.has_vault(collateral_id, caller):
            self.vault_ledger.expand(collateral_id, caller, collateral_amount, debt_amount)
        else:
            self.vault_ledger.open(collateral_id, caller, collateral_amount, debt_amount)

        self.vault_ledger.require_healthy(collateral_id, caller)
        self.dsc_token.mint(self.address, caller, debt_amount)
        self.events.emit(DebtMinted(collateral_id, caller, debt_amount))

    def deposit_collateral_and_mint_dsc(self, caller, collateral_id, collateral_amount, debt_amount):
        """Deposits collateral and locks all of it into a vault minting DSC."""
        with self._transaction("deposit_collateral_and_mint_dsc"):
            self._deposit(caller, collateral_id, collateral_amount)
            self._mint(caller, collateral_id, collateral_amount, debt_amount)

    def add_collateral_to_vault(self, caller, collateral_id, amount):
        """Locks more unlocked collateral into an existing vault."""
        with self._transaction("add_collateral_to_vault"):
            self._require_positive(amount, "Collateral")
            self.vault_ledger.expand(collateral_id, caller, amount, 0)
            self.vault_ledger.require_healthy(collateral_id, caller)

    def burn_dsc(self, caller, collateral_id, amount):
        """
        Repays part or all of a vault's debt with the caller's DSC.

        The caller must have approved the engine for amount. The vault must
        still be healthy once the pending fee is settled and the debt reduced.
        A vault left without debt and collateral is closed.
        """
        with self._transaction("burn_dsc"):
            self._burn(caller, collateral_id, amount)

    def _burn(self, caller, collateral_id, amount):
        self._require_positive(amount, "Burn")
        self.vault_ledger.shrink_debt(collateral_id, caller, amount)
        self.vault_ledger.require_healthy(collateral_id, caller)
        self.dsc_token.burn_from(self.address, caller, amount)
        self.events.emit(DebtBurned(collateral_id, caller, amount))
        self.vault_ledger.close_if_empty(collateral_id, caller)

    def redeem_collateral(self, caller, collateral_id, amount, withdraw=False):
        """
        Unlocks collateral from the caller's vault.

        Args:
            caller: Vault owner
            collateral_id: Collateral type
            amount: Collateral to unlock
            withdraw: Also send the unlocked collateral out of the protocol

        Raises:
            UnderCollateralized: If the vault would be left unhealthy
        """
        with self._transaction("redeem_collateral"):
            self._redeem(caller, collateral_id, amount, withdraw)

    def _redeem(self, caller, collateral_id, amount, withdraw):
        self._require_positive(amount, "Redemption")
        self.vault_ledger.shrink_collateral(collateral_id, caller, amount)
        self.vault_ledger.require_healthy(collateral_id, caller)
        self.events.emit(CollateralRedeemed(collateral_id, caller, amount))
        self.vault_ledger.close_if_empty(collateral_id, caller)
        if withdraw:
            self._withdraw(caller, collateral_id, amount)

    def burn_dsc_and_redeem_collateral(self, caller, collateral_id, burn_amount, redeem_amount, withdraw=False):
        """Repays debt and unlocks collateral in one action."""
        with self._transaction("burn_dsc_and_redeem_collateral"):
            self._burn(caller, collateral_id, burn_amount)
            self._redeem(caller, collateral_id, redeem_amount, withdraw)

    # --- Liquidation ---

    def mark_underwater(self, collateral_id, owner):
        """
        Records the onset of a vault's insolvency. Callable by anyone.

        Returns:
            True if the vault is underwater
        """
        with self._transaction("mark_underwater"):
            return self.liquidation_engine.mark_underwater(collateral_id, owner)

    def liquidate(self, caller, collateral_id, owner, supplied_debt, withdraw=False):
        """
        Liquidates an underwater vault by repaying its whole debt.

        Returns:
            LiquidationResult describing the outcome
        """
        with self._transaction("liquidate"):
            return self.liquidation_engine.execute(caller, collateral_id, owner, supplied_debt, withdraw)

    # --- Getter functions ---

    def get_vault(self, collateral_id, owner):
        return self.vault_ledger.get_vault(collateral_id, owner)

    def get_health_factor(self, collateral_id, owner):
        return self.vault_ledger.health_factor(collateral_id, owner)

    def get_unlocked_balance(self, collateral_id, account):
        return self.collateral_pool.balance_of(collateral_id, account)

    def get_reward(self, collateral_id, owner):
        return self.liquidation_engine.reward_of(collateral_id, owner)

    def get_absorbed_vault(self, collateral_id, owner):
        return self.vault_ledger.get_absorbed_vault(collateral_id, owner)

    def get_accrued_fees(self, collateral_id):
        return self.vault_ledger.accrued_fees.get(collateral_id, 0)

    def get_accrued_penalties(self, collateral_id):
        return self.vault_ledger.accrued_penalties.get(collateral_id, 0)

    def total_debt_of(self, collateral_id):
        return self.registry.get(collateral_id).total_debt
