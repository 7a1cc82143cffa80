"""
Visualization simulation for the DSC Protocol Economic Model.

This script demonstrates the DSC Protocol with visualizations.
"""

import logging
import sys
import os

import numpy as np

# Add the repository root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from dsc_protocol.economic_model import DSCProtocolEconomicModel


def run_visualization_simulation():
    logging.basicConfig(level=logging.WARNING)

    # Initialize the protocol
    model = DSCProtocolEconomicModel(initial_price=2000.0, ocr_percent=170)
    model.fund_keeper(100_000.0)

    print("Creating initial vaults...")
    # Create some initial vaults with varying collateral and risk profiles
    for i in range(10):
        collateral = np.random.uniform(2.0, 10.0)
        # Target different collateralization ratios from 175% to 255%
        target_cr = 1.75 + (i * 0.8 / 10)
        debt = collateral * 2000 / target_cr
        model.open_vault(f"user{i}", collateral, debt)
        print(f"Vault user{i}: {collateral:.2f} ETH, {debt:.2f} DSC, CR: {target_cr*100:.0f}%")

    # Run a simulation with price movements and plot results
    print("\nRunning simulation with visualizations...")
    results = model.simulate_market_scenario(30, price_volatility=0.03, plot_results=True)

    print("\nSimulation Results:")
    for key, value in results.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    run_visualization_simulation()
