"""
Liquidation Engine Model for the DSC Protocol.

This module handles the liquidation of undercollateralized vaults. A vault
moves through the following states:

    Healthy -> Underwater -> Liquidated | Absorbed

A vault becomes Underwater the first time anyone observes its health factor
below 1.0; that moment is recorded once and drives the liquidator's speed
bonus. Price recovery does not clear the marker, but a healthy vault cannot
be liquidated.

Liquidation always repays the whole debt of a vault. The liquidator is paid
in collateral: the base repayment (collateral worth the repaid debt) plus a
reward made of a time-decayed discount and a debt-size scaled bonus. The
outcome depends on what is left in the vault once the penalty is taken:

1. Enough for base + reward: the liquidator is paid in full and any surplus
   goes back to the vault owner
2. Enough for the base only: the liquidator receives everything left
3. Not even the base: the protocol absorbs the vault as bad debt and mints
   fresh DSC to refund the liquidator
"""

import logging
from dataclasses import dataclass

from .config import DEFAULT_CONFIG
from .constants import DECIMAL_PRECISION, MIN_HEALTH_FACTOR
from .errors import InsufficientRepayment, InvalidAmount, VaultNotUnderwater
from .events import (
    LiquidationOutcome,
    LiquidationSurplusReturned,
    VaultLiquidated,
    VaultMarkedUnderwater,
)
from .fees import discount_rate, size_reward

logger = logging.getLogger(__name__)


@dataclass
class LiquidationResult:
    """
    Values calculated during the liquidation of a vault.
    """
    outcome: LiquidationOutcome
    debt_repaid: int = 0         # DSC burned from the liquidator
    penalty_tokens: int = 0      # Collateral swept into the penalty reserve
    fee_tokens: int = 0          # Collateral taken by the final fee settlement
    reward_usd: int = 0          # Discount plus size reward, 18 decimals
    base_tokens: int = 0         # Collateral worth the repaid debt
    reward_tokens: int = 0       # Collateral worth the reward
    collateral_paid: int = 0     # Collateral credited to the liquidator
    surplus_returned: int = 0    # Collateral returned to the vault owner
    withdrawn: bool = False      # Liquidator's credit sent out of the protocol


class LiquidationEngine:
    """
    Detects underwater vaults and executes their liquidation.
    """

    def __init__(self, vault_ledger, registry, valuation, collateral_pool, dsc_token,
                 clock, events, engine_address, config=DEFAULT_CONFIG):
        self.vault_ledger = vault_ledger
        self.registry = registry
        self.valuation = valuation
        self.collateral_pool = collateral_pool
        self.dsc_token = dsc_token
        self.clock = clock
        self.events = events
        # Owner of the DSC token, used to burn and re-mint
        self.engine_address = engine_address
        self.config = config

    def mark_underwater(self, collateral_id, owner):
        """
        Records the moment a vault is first seen undercollateralized.

        Calling it again on a vault that is still underwater keeps the original
        timestamp.

        Returns:
            True if the vault is underwater, False if it is healthy
        """
        vault = self.vault_ledger.get_vault(collateral_id, owner)
        health_factor = self.vault_ledger.health_factor(collateral_id, owner)
        if health_factor >= MIN_HEALTH_FACTOR:
            return False

        if vault.underwater_since is None:
            vault.underwater_since = self.clock.now()
            self.events.emit(VaultMarkedUnderwater(collateral_id, owner, vault.underwater_since, health_factor))
        return True

    def initiate(self, collateral_id, owner, supplied_debt):
        """
        Checks that a vault can be liquidated with the supplied debt.

        Raises:
            VaultNotFound: If there is no such vault
            VaultNotUnderwater: If the vault is healthy
            InsufficientRepayment: If supplied_debt is not the whole debt
        """
        if supplied_debt <= 0:
            raise InvalidAmount("Supplied debt must be greater than zero")
        if not self.mark_underwater(collateral_id, owner):
            raise VaultNotUnderwater(f"{collateral_id} vault of {owner} is not eligible for liquidation")

        debt = self.vault_ledger.debt_of(collateral_id, owner)
        if supplied_debt != debt:
            raise InsufficientRepayment(
                f"Liquidation must repay the whole debt: supplied {supplied_debt}, debt {debt}"
            )
        return debt

    def discount(self, collateral_id, owner):
        """Time-decayed speed bonus of an underwater vault, in USD."""
        vault = self.vault_ledger.get_vault(collateral_id, owner)
        if vault.underwater_since is None:
            raise VaultNotUnderwater(f"{collateral_id} vault of {owner} has not been marked underwater")

        elapsed = self.clock.now() - vault.underwater_since
        rate = discount_rate(
            elapsed,
            self.config.discount_start_rate,
            self.config.discount_end_rate,
            self.config.discount_decay_period,
        )
        return rate * vault.debt // DECIMAL_PRECISION

    def size_reward(self, collateral_id, owner):
        """Debt-size scaled bonus of a vault, in USD."""
        config = self.registry.get(collateral_id)
        debt = self.vault_ledger.debt_of(collateral_id, owner)
        return size_reward(
            debt,
            config.threshold,
            self.config.high_risk_size_reward_rate,
            self.config.low_risk_size_reward_rate,
            self.config.high_risk_ocr_floor,
            self.config.min_size_reward,
            self.config.max_size_reward,
        )

    def reward_of(self, collateral_id, owner):
        """
        Returns the USD reward for liquidating a vault right now.
        """
        return self.discount(collateral_id, owner) + self.size_reward(collateral_id, owner)

    def execute(self, liquidator, collateral_id, owner, supplied_debt, wants_withdraw=False):
        """
        Liquidates a vault by repaying its whole debt.

        The steps run in a fixed order: the penalty is taken before the reward
        is computed, and the pending fee is settled before the debt changes.

        Args:
            liquidator: Address repaying the debt, must have approved the engine
            collateral_id: Collateral type of the vault
            owner: Owner of the vault
            supplied_debt: DSC the liquidator repays, must equal the vault debt
            wants_withdraw: Send the liquidator's collateral out of the protocol
                instead of leaving it as an unlocked balance

        Returns:
            LiquidationResult describing the outcome
        """
        self.initiate(collateral_id, owner, supplied_debt)

        penalty_tokens = self.vault_ledger.seize_penalty(collateral_id, owner)
        reward_usd = self.reward_of(collateral_id, owner)

        # shrink_debt settles the pending fee first
        collateral_before_fee = self.vault_ledger.collateral_of(collateral_id, owner)
        self.dsc_token.burn_from(self.engine_address, liquidator, supplied_debt)
        self.vault_ledger.shrink_debt(collateral_id, owner, supplied_debt)
        available = self.vault_ledger.collateral_of(collateral_id, owner)
        fee_tokens = collateral_before_fee - available

        reward_tokens = self.valuation.token_amount_for(collateral_id, reward_usd)
        base_tokens = self.valuation.token_amount_for(collateral_id, supplied_debt)
        total_payout = base_tokens + reward_tokens

        result = LiquidationResult(
            outcome=LiquidationOutcome.FULL_REWARD,
            debt_repaid=supplied_debt,
            penalty_tokens=penalty_tokens,
            fee_tokens=fee_tokens,
            reward_usd=reward_usd,
            base_tokens=base_tokens,
            reward_tokens=reward_tokens,
        )

        if available >= total_payout:
            result.collateral_paid = self.vault_ledger.release_collateral(
                collateral_id, owner, total_payout, liquidator
            )
        elif available >= base_tokens:
            result.outcome = LiquidationOutcome.PARTIAL_REWARD
            result.collateral_paid = self.vault_ledger.release_collateral(
                collateral_id, owner, available, liquidator
            )
        else:
            # Bad debt: the protocol takes the vault over and refunds the liquidator
            result.outcome = LiquidationOutcome.BAD_DEBT
            self.vault_ledger.absorb(collateral_id, owner, supplied_debt)
            self.dsc_token.mint(self.engine_address, liquidator, supplied_debt)

        self.events.emit(VaultLiquidated(
            collateral_id, owner, liquidator, result.outcome,
            supplied_debt, result.collateral_paid, reward_usd,
        ))

        if wants_withdraw and result.collateral_paid > 0:
            self.collateral_pool.transfer_out(collateral_id, liquidator, result.collateral_paid)
            result.withdrawn = True

        if result.outcome is not LiquidationOutcome.BAD_DEBT:
            surplus = self.vault_ledger.collateral_of(collateral_id, owner)
            if surplus > 0:
                self.vault_ledger.release_collateral(collateral_id, owner, surplus, owner)
                result.surplus_returned = surplus
                self.events.emit(LiquidationSurplusReturned(collateral_id, owner, surplus))
            self.vault_ledger.delete_vault(collateral_id, owner)

        log = logger.warning if result.outcome is LiquidationOutcome.BAD_DEBT else logger.info
        log(
            "Vault liquidated",
            extra={"event": "liquidation", "collateral_id": collateral_id, "owner": owner,
                   "liquidator": liquidator, "outcome": result.outcome.value},
        )
        return result
