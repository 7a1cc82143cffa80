"""
Collateral Pool Model for the DSC Protocol.

This module simulates the custody side of the protocol: collateral held for
accounts but not locked into any vault. Vault creation and expansion debit
these balances; vault shrinks, liquidation proceeds and surplus returns
credit them. Outbound transfers go through a transport callable standing in
for the Ether or ERC20 transfer.
"""

import logging

from .errors import InsufficientCollateral, InvalidAmount, TransferFailed

logger = logging.getLogger(__name__)


def _always_succeeds(collateral_id, account, amount):
    return True


class CollateralPool:
    """
    Simulates the contract balances of deposited, unlocked collateral.
    """

    def __init__(self, transport=None):
        # (collateral_id, account) -> unlocked amount
        self.balances = {}

        # collateral_id -> total collateral held by the protocol, locked or not
        self.custody = {}

        # Called for every outbound transfer; returns False on failure
        self.transport = transport or _always_succeeds

    def balance_of(self, collateral_id, account):
        """Returns the unlocked collateral balance of an account."""
        return self.balances.get((collateral_id, account), 0)

    def get_coll_balance(self, collateral_id):
        """Returns the total collateral of a type held by the protocol."""
        return self.custody.get(collateral_id, 0)

    def deposit(self, collateral_id, account, amount):
        """
        Receives collateral from outside the protocol.
        """
        if amount <= 0:
            raise InvalidAmount(f"Invalid collateral amount: {amount}")

        self.custody[collateral_id] = self.custody.get(collateral_id, 0) + amount
        self.credit(collateral_id, account, amount)
        return True

    def credit(self, collateral_id, account, amount):
        """Adds to an account's unlocked balance."""
        if amount < 0:
            raise InvalidAmount(f"Invalid collateral amount: {amount}")
        key = (collateral_id, account)
        self.balances[key] = self.balances.get(key, 0) + amount
        return True

    def debit(self, collateral_id, account, amount):
        """
        Removes from an account's unlocked balance.

        Raises:
            InsufficientCollateral: If the balance is too low
        """
        if amount < 0:
            raise InvalidAmount(f"Invalid collateral amount: {amount}")
        balance = self.balance_of(collateral_id, account)
        if balance < amount:
            raise InsufficientCollateral(
                f"Insufficient {collateral_id} balance for {account}: {balance} < {amount}"
            )
        self.balances[(collateral_id, account)] = balance - amount
        return True

    def transfer_out(self, collateral_id, account, amount):
        """
        Sends unlocked collateral out of the protocol.

        Raises:
            InsufficientCollateral: If the balance is too low
            TransferFailed: If the transport refuses the transfer
        """
        if amount <= 0:
            raise InvalidAmount(f"Invalid collateral amount: {amount}")

        self.debit(collateral_id, account, amount)
        self.custody[collateral_id] -= amount

        if not self.transport(collateral_id, account, amount):
            raise TransferFailed(f"Transfer of {amount} {collateral_id} to {account} failed")

        logger.debug(
            "Collateral sent",
            extra={"event": "pool.transfer_out", "collateral_id": collateral_id, "account": account, "amount": amount},
        )
        return True
