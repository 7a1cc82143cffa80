"""Custom errors for the DSC Protocol model.

Every protocol error derives from ValueError so callers that only care about
"the action was rejected" can keep catching ValueError.
"""


class ProtocolError(ValueError):
    """Base error class for protocol errors"""
    pass


# --- Validation ---

class InvalidAmount(ProtocolError):
    """Amount is zero or negative"""
    pass


class UnsupportedCollateral(ProtocolError):
    """Collateral type is not registered"""

    def __init__(self, collateral_id):
        super().__init__(f"Unsupported collateral: {collateral_id}")
        self.collateral_id = collateral_id


class CollateralAlreadyRegistered(ProtocolError):
    """Collateral type is already registered"""
    pass


class CollateralHasDebt(ProtocolError):
    """Collateral type still backs outstanding debt"""
    pass


class BelowMinimumDebt(ProtocolError):
    """Requested debt is below the minimum vault debt"""
    pass


class NotOwner(ProtocolError):
    """Caller is not allowed to perform an owner-only action"""
    pass


# --- Solvency ---

class UnderCollateralized(ProtocolError):
    """Vault health factor is below 1.0 after the action"""

    def __init__(self, health_factor):
        super().__init__(f"Vault is undercollateralized, health factor: {health_factor}")
        self.health_factor = health_factor


class InsufficientCollateral(ProtocolError):
    """Not enough collateral to debit"""
    pass


class InsufficientDebt(ProtocolError):
    """Burn amount exceeds the vault debt"""
    pass


# --- Oracle ---

class OracleError(ProtocolError):
    """Base error for price feed failures"""
    pass


class StaleOracle(OracleError):
    """Price feed has not been updated within the freshness window"""

    def __init__(self, feed_id, updated_at, now):
        super().__init__(f"Stale price for {feed_id}: last update {updated_at}, now {now}")
        self.feed_id = feed_id
        self.updated_at = updated_at


class InvalidPrice(OracleError):
    """Price feed is unknown or reports a non-positive price"""
    pass


# --- Liquidation ---

class VaultNotFound(ProtocolError):
    """No vault for the given collateral and owner"""
    pass


class VaultAlreadyExists(ProtocolError):
    """A vault already exists for the given collateral and owner"""
    pass


class VaultNotUnderwater(ProtocolError):
    """Vault is healthy and is not eligible for liquidation"""
    pass


class InsufficientRepayment(ProtocolError):
    """Liquidator must repay exactly the whole vault debt"""
    pass


# --- Token and transport ---

class InsufficientBalance(ProtocolError):
    """Token balance too low"""
    pass


class InsufficientAllowance(ProtocolError):
    """Spender allowance too low"""
    pass


class TransferFailed(ProtocolError):
    """Outbound collateral transfer was refused"""
    pass


# --- Concurrency ---

class ReentrantCall(ProtocolError):
    """Engine entered again while a call is in flight"""
    pass
