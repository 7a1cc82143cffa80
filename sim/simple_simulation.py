"""
Simple simulation for the DSC Protocol Economic Model.

This script demonstrates a minimal simulation of the DSC Protocol: a few
vaults, a price drop and the keeper's reaction.
"""

import logging
import sys
import os

import numpy as np

# Add the repository root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dsc_protocol.economic_model import DSCProtocolEconomicModel


def print_state(model):
    state = model.get_system_state()
    print(f"  ETH price: ${state['prices']['ETH']:.2f}")
    print(f"  Locked collateral value: ${state['total_coll_value']:.2f}")
    print(f"  Total debt: {state['total_debt']:.2f} DSC")
    print(f"  Active vaults: {state['active_vaults']}")
    print(f"  Absorbed vaults: {state['absorbed_vaults']} ({state['bad_debt']:.2f} DSC bad debt)")


def run_basic_simulation():
    logging.basicConfig(level=logging.WARNING)
    rng = np.random.default_rng(1)

    # Initialize the protocol
    model = DSCProtocolEconomicModel(initial_price=2000.0, ocr_percent=170)
    model.fund_keeper(20_000.0)

    print("Creating initial vaults...")
    for i in range(5):
        collateral = rng.uniform(3.0, 8.0)
        # Target between 175% and 255% collateralization
        target_cr = 1.75 + i * 0.2
        debt = collateral * 2000 / target_cr
        model.open_vault(f"user{i}", collateral, debt)
        print(f"Vault user{i}: {collateral:.2f} ETH, {debt:.2f} DSC, CR: {target_cr*100:.0f}%")

    print("\nInitial protocol state:")
    print_state(model)

    # Simulate a price drop
    new_price = 1800.0
    print(f"\nSimulating price drop to ${new_price:.2f}")
    liquidated = model.update_price(new_price)

    if liquidated:
        print(f"Vaults liquidated by the keeper: {liquidated}")
    else:
        print("No vaults eligible for liquidation at this price")

    # One day later
    model.update_time(24 * 3600)

    print("\nFinal protocol state:")
    print_state(model)


if __name__ == "__main__":
    run_basic_simulation()
