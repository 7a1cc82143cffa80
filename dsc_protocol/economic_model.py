"""
Economic Model for the DSC Protocol.

This main module combines all the individual components to create a complete
economic model of the DSC stablecoin system. It can be used to simulate
market scenarios and observe how fees, liquidations and bad debt evolve.

Amounts passed to the helpers of this module are plain floats in whole units
(1.5 ETH, 2000.0 DSC); they are converted to 18-decimal integers before
reaching the engine.
"""

import logging

import numpy as np
import matplotlib.pyplot as plt

from .clock import SimulationClock
from .collateral_pool import CollateralPool
from .collateral_registry import CollateralRegistry, threshold_from_ocr
from .config import DEFAULT_CONFIG
from .constants import DECIMAL_PRECISION, NATIVE_ASSET
from .dsc_engine import DSCEngine
from .dsc_token import DSCToken
from .errors import ProtocolError
from .events import EventLog
from .liquidation_engine import LiquidationEngine
from .price_feed import PriceFeed
from .valuation import ValuationService
from .vault_ledger import VaultLedger

logger = logging.getLogger(__name__)

PRICE_DECIMALS = 8
SECONDS_PER_DAY = 24 * 60 * 60


def to_wad(amount):
    """Converts a float amount in whole units to an 18-decimal integer."""
    return int(round(float(amount) * DECIMAL_PRECISION))


def from_wad(amount):
    """Converts an 18-decimal integer to a float in whole units."""
    return amount / DECIMAL_PRECISION


class DSCProtocolEconomicModel:
    """
    Complete economic model of the DSC Protocol.
    Combines all components and provides simulation capabilities.
    """

    def __init__(self, initial_price=2000.0, ocr_percent=170, start_time=1_700_000_000,
                 config=DEFAULT_CONFIG, admin="admin", keeper="keeper"):
        self.admin = admin
        self.keeper = keeper
        self.config = config

        # Set up clock and price feed
        self.clock = SimulationClock(start_time)
        self.price_feed = PriceFeed(self.clock, config.oracle_staleness_window)

        # Create token, pools and registries
        self.events = EventLog()
        self.dsc_token = DSCToken()
        self.collateral_pool = CollateralPool()
        self.registry = CollateralRegistry()
        self.valuation = ValuationService(self.registry, self.price_feed)
        self.vault_ledger = VaultLedger(
            self.registry, self.valuation, self.collateral_pool, self.clock, self.events, config
        )
        self.valuation.vault_ledger = self.vault_ledger

        engine_address = "DSCEngine"
        self.liquidation_engine = LiquidationEngine(
            self.vault_ledger, self.registry, self.valuation, self.collateral_pool,
            self.dsc_token, self.clock, self.events, engine_address, config,
        )
        self.engine = DSCEngine(
            admin, self.registry, self.valuation, self.vault_ledger, self.liquidation_engine,
            self.collateral_pool, self.dsc_token, self.clock, self.events,
            address=engine_address, config=config,
        )
        self.dsc_token.set_owner(engine_address)

        # Prices in whole USD, re-published on every step so feeds stay fresh
        self.prices = {}

        # Volatile collateral under study, and a stable one funding the keeper
        self.add_collateral("ETH", initial_price, ocr_percent, token=NATIVE_ASSET)
        self.add_collateral("USDC", 1.0, 110, token_decimals=6)

        # History tracking for simulations
        self.price_history = []
        self.total_coll_history = []
        self.total_debt_history = []
        self.active_vaults_history = []
        self.scr_history = []  # System collateralization ratio history
        self._update_history()

    # --- Setup helpers ---

    def add_collateral(self, collateral_id, price, ocr_percent, token=None, token_decimals=18):
        """Registers a collateral type with its own feed."""
        feed_id = f"{collateral_id}/USD"
        self.set_price(collateral_id, price, feed_id)
        self.engine.add_collateral_type(
            self.admin, collateral_id, token or collateral_id,
            threshold_from_ocr(ocr_percent), feed_id, token_decimals,
        )

    def set_price(self, collateral_id, price, feed_id=None):
        """Publishes a price for a collateral type at the current time."""
        feed_id = feed_id or f"{collateral_id}/USD"
        self.prices[collateral_id] = price
        self.price_feed.set_price(feed_id, int(round(price * 10**PRICE_DECIMALS)), PRICE_DECIMALS)

    def _refresh_prices(self):
        for collateral_id, price in self.prices.items():
            self.set_price(collateral_id, price)

    def _token_units(self, collateral_id, amount):
        decimals = self.registry.get(collateral_id).token_decimals
        return int(round(float(amount) * 10**decimals))

    def fund_keeper(self, dsc_amount, collateral_id="USDC"):
        """
        Gives the keeper DSC to repay liquidated debt, minted against stable
        collateral at twice the required ratio.
        """
        config = self.registry.get(collateral_id)
        collateral_usd = 2 * dsc_amount * DECIMAL_PRECISION / config.threshold
        collateral = collateral_usd / self.prices[collateral_id]
        self.engine.deposit_collateral_and_mint_dsc(
            self.keeper, collateral_id,
            self._token_units(collateral_id, collateral), to_wad(dsc_amount),
        )
        self.dsc_token.approve(self.keeper, self.engine.address, self.dsc_token.balance_of(self.keeper))

    # --- User actions ---

    def open_vault(self, owner, collateral, debt, collateral_id="ETH"):
        """
        Deposits collateral and mints DSC in one action.

        Args:
            owner: Vault owner
            collateral: Collateral amount in whole tokens
            debt: DSC to mint in whole units
            collateral_id: Collateral type

        Returns:
            The vault
        """
        self.engine.deposit_collateral_and_mint_dsc(
            owner, collateral_id, self._token_units(collateral_id, collateral), to_wad(debt)
        )
        self._update_history()
        return self.engine.get_vault(collateral_id, owner)

    def liquidate_vault(self, owner, collateral_id="ETH", liquidator=None):
        """
        Liquidates a vault with the keeper's (or the given liquidator's) DSC.
        """
        liquidator = liquidator or self.keeper
        debt = self.vault_ledger.debt_of(collateral_id, owner)
        self.dsc_token.approve(liquidator, self.engine.address, debt)
        result = self.engine.liquidate(liquidator, collateral_id, owner, debt)
        self._update_history()
        return result

    def update_price(self, new_price, collateral_id="ETH"):
        """
        Updates a collateral price, marks vaults that fell underwater and lets
        the keeper liquidate them.

        Returns:
            List of liquidated vault owners
        """
        self.set_price(collateral_id, new_price)

        liquidated = []
        for vault in list(self.vault_ledger.vaults_of(collateral_id)):
            if vault.owner == self.keeper:
                continue
            if not self.engine.mark_underwater(collateral_id, vault.owner):
                continue
            if self.dsc_token.balance_of(self.keeper) < vault.debt:
                logger.warning(
                    "Keeper cannot cover underwater vault",
                    extra={"event": "keeper.short", "owner": vault.owner, "debt": vault.debt},
                )
                continue
            try:
                self.liquidate_vault(vault.owner, collateral_id)
                liquidated.append(vault.owner)
            except ProtocolError as exc:
                logger.warning(
                    "Keeper liquidation failed",
                    extra={"event": "keeper.failed", "owner": vault.owner, "error": str(exc)},
                )

        self._update_history()
        return liquidated

    def update_time(self, seconds):
        """
        Advances the simulation by the specified number of seconds and
        re-publishes all prices so the feeds stay fresh.
        """
        self.clock.advance(seconds)
        self._refresh_prices()
        self._update_history()

    # --- Reporting ---

    def get_system_state(self):
        """
        Returns the current state of the system.

        Returns:
            Dictionary with system state
        """
        total_coll_value = 0
        total_debt = 0
        for collateral_id in self.registry.collateral_ids():
            total_debt += self.registry.get(collateral_id).total_debt
            for vault in self.vault_ledger.vaults_of(collateral_id):
                total_coll_value += self.valuation.collateral_usd_value(collateral_id, vault.collateral)

        absorbed_debt = sum(record.debt for record in self.vault_ledger.absorbed.values())

        # System collateralization ratio
        scr = total_coll_value / total_debt if total_debt > 0 else float('inf')

        return {
            'prices': dict(self.prices),
            'total_coll_value': from_wad(total_coll_value),
            'total_debt': from_wad(total_debt),
            'dsc_supply': from_wad(self.dsc_token.total_supply),
            'scr': scr,
            'active_vaults': len(self.vault_ledger.vaults),
            'absorbed_vaults': len(self.vault_ledger.absorbed),
            'bad_debt': from_wad(absorbed_debt),
            'accrued_fees': dict(self.vault_ledger.accrued_fees),
            'accrued_penalties': dict(self.vault_ledger.accrued_penalties),
        }

    def _update_history(self):
        """Updates history tracking for simulations."""
        state = self.get_system_state()

        self.price_history.append(state['prices'].get('ETH', 0.0))
        self.total_coll_history.append(state['total_coll_value'])
        self.total_debt_history.append(state['total_debt'])
        self.active_vaults_history.append(state['active_vaults'])
        self.scr_history.append(state['scr'])

    def simulate_market_scenario(self, days, price_volatility=0.02, plot_results=True, seed=None):
        """
        Runs a simulation with random ETH price movements over the specified period.

        Args:
            days: Number of days to simulate
            price_volatility: Daily price volatility (standard deviation of log returns)
            plot_results: Whether to plot the results
            seed: Seed of the random price path

        Returns:
            Dictionary with simulation results
        """
        steps = days * 24  # hourly steps
        step_size = SECONDS_PER_DAY // 24

        # Reset history
        self.price_history = []
        self.total_coll_history = []
        self.total_debt_history = []
        self.active_vaults_history = []
        self.scr_history = []
        self._update_history()
        initial_vaults = self.active_vaults_history[0]

        # Generate random price movements (log-normal)
        rng = np.random.default_rng(seed)
        hourly_volatility = price_volatility / np.sqrt(24)
        log_returns = rng.normal(0, hourly_volatility, steps)

        price = self.prices['ETH']
        time_points = np.zeros(steps)
        step_marks = []  # history index recorded at the end of each step
        liquidations = 0

        for i in range(steps):
            # Advance time by one step, then move the price
            self.update_time(step_size)
            price *= float(np.exp(log_returns[i]))
            liquidations += len(self.update_price(price))

            time_points[i] = i * step_size / SECONDS_PER_DAY
            step_marks.append(len(self.price_history) - 1)

        if plot_results:
            self.plot_history(time_points, step_marks)

        final_state = self.get_system_state()
        return {
            'final_eth_price': final_state['prices']['ETH'],
            'final_system_debt': final_state['total_debt'],
            'final_collateral_value': final_state['total_coll_value'],
            'active_vaults': final_state['active_vaults'],
            'initial_vaults': initial_vaults,
            'liquidations': liquidations,
            'bad_debt': final_state['bad_debt'],
            'final_scr': final_state['scr'],
        }

    def plot_history(self, time_points, step_marks):
        """Plots the last simulated period, one point per step."""
        def at_steps(history):
            return [history[i] for i in step_marks]

        fig, axs = plt.subplots(5, 1, figsize=(12, 20), sharex=True)

        axs[0].plot(time_points, at_steps(self.price_history))
        axs[0].set_title('ETH Price')
        axs[0].set_ylabel('USD')

        axs[1].plot(time_points, at_steps(self.total_debt_history))
        axs[1].set_title('Total System Debt')
        axs[1].set_ylabel('DSC')

        axs[2].plot(time_points, at_steps(self.total_coll_history))
        axs[2].set_title('Locked Collateral Value')
        axs[2].set_ylabel('USD')

        axs[3].plot(time_points, at_steps(self.active_vaults_history))
        axs[3].set_title('Active Vaults')
        axs[3].set_ylabel('Count')

        axs[4].plot(time_points, at_steps(self.scr_history))
        axs[4].set_title('System Collateralization Ratio')
        axs[4].set_ylabel('Ratio')
        axs[4].set_xlabel('Days')

        plt.tight_layout()
        plt.show()
        return fig
