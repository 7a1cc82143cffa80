"""
DSC Token Model for the DSC Protocol.

This module simulates the DSC stablecoin contract. It handles minting,
burning, allowances and transfers of DSC. Minting and burning are gated to
the token owner, which is the DSC engine.
"""

from .errors import InsufficientAllowance, InsufficientBalance, InvalidAmount, NotOwner


class DSCToken:
    """
    Simulates the DSC stablecoin contract.
    """

    def __init__(self, owner=None):
        # Total token supply
        self.total_supply = 0

        # Mapping of addresses to token balances
        self.balances = {}

        # (holder, spender) -> remaining allowance
        self.allowances = {}

        # Only the owner may mint and burn
        self.owner = owner

    def set_owner(self, owner):
        """Sets the owner of the contract."""
        self.owner = owner

    def _only_owner(self, caller):
        if self.owner is None or caller != self.owner:
            raise NotOwner(f"{caller} is not the DSC owner")

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def allowance(self, holder, spender):
        """Returns how much spender may still move on behalf of holder."""
        return self.allowances.get((holder, spender), 0)

    def approve(self, holder, spender, amount):
        """
        Allows spender to move up to amount tokens of holder.
        """
        if amount < 0:
            raise InvalidAmount("Allowance cannot be negative")
        self.allowances[(holder, spender)] = amount
        return True

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        Args:
            sender: Address sending the tokens
            recipient: Address receiving the tokens
            amount: Amount of tokens to transfer

        Returns:
            True if successful
        """
        if amount <= 0:
            raise InvalidAmount("Amount must be greater than zero")

        sender_balance = self.balances.get(sender, 0)

        if sender_balance < amount:
            raise InsufficientBalance(f"Insufficient DSC balance: {sender_balance} < {amount}")

        # Update balances
        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        return True

    def transfer_from(self, spender, holder, recipient, amount):
        """
        Transfers tokens from holder to recipient using spender's allowance.
        """
        allowed = self.allowance(holder, spender)
        if allowed < amount:
            raise InsufficientAllowance(f"Allowance of {spender} over {holder} too low: {allowed} < {amount}")

        self.transfer(holder, recipient, amount)
        self.allowances[(holder, spender)] = allowed - amount
        return True

    def mint(self, caller, recipient, amount):
        """
        Mints new tokens to the recipient account.
        Only callable by the owner.

        Args:
            caller: Address requesting the mint
            recipient: Address receiving the minted tokens
            amount: Amount of tokens to mint

        Returns:
            True if successful
        """
        self._only_owner(caller)

        if amount <= 0:
            raise InvalidAmount("Amount must be greater than zero")

        # Update recipient balance
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

        # Update total supply
        self.total_supply += amount

        return True

    def burn(self, caller, amount):
        """
        Burns tokens held by the owner itself.
        """
        self._only_owner(caller)

        if amount <= 0:
            raise InvalidAmount("Amount must be greater than zero")

        from_balance = self.balances.get(caller, 0)

        if from_balance < amount:
            raise InsufficientBalance(f"Insufficient DSC balance: {from_balance} < {amount}")

        # Update balance
        self.balances[caller] = from_balance - amount

        # Update total supply
        self.total_supply -= amount

        return True

    def burn_from(self, caller, holder, amount):
        """
        Pulls tokens from holder to the owner, then destroys them.

        The holder must have approved the owner for at least amount.

        Args:
            caller: Address requesting the burn, must be the owner
            holder: Address whose tokens are burned
            amount: Amount of tokens to burn

        Returns:
            True if successful
        """
        self._only_owner(caller)
        self.transfer_from(caller, holder, caller, amount)
        return self.burn(caller, amount)
