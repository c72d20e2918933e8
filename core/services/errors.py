"""
Service-level exceptions shared by the bridge, withdrawal and ledger services
"""
from typing import Any, Dict, Optional


class VaultBridgeError(Exception):
    """Base class for all service errors"""


# Withdrawal gate

class WithdrawalError(VaultBridgeError):
    """Withdrawal rejected before or during execution"""

    status_code = 500
    error = "Internal server error"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None, **details: Any):
        self.error = error or self.error
        self.message = message
        self.details = details
        super().__init__(message or self.error)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        body.update(self.details)
        return body


class WithdrawalValidationError(WithdrawalError):
    """Missing or malformed request fields"""

    status_code = 400


class WithdrawalAuthorizationError(WithdrawalError):
    """Server key is not the vault admin"""

    status_code = 403
    error = "Unauthorized: Only admin can execute withdrawals"


class InsufficientLiquidityError(WithdrawalError):
    """Vault holds less than the requested amount"""

    status_code = 400
    error = "Insufficient vault balance"

    def __init__(self, requested: int, available: int):
        super().__init__(requested=str(requested), available=str(available))
        self.requested = requested
        self.available = available


# Chain access

class ChainError(VaultBridgeError):
    """RPC failure, reverted transaction or decode failure"""


class ConfirmationTimeout(ChainError):
    """Transaction receipt did not appear before the deadline"""

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout:.0f}s")


class TransactionReverted(ChainError):
    """Receipt came back with status 0"""

    def __init__(self, tx_hash: str, block_number: Optional[int] = None):
        self.tx_hash = tx_hash
        self.block_number = block_number
        super().__init__(f"Transaction {tx_hash} reverted in block {block_number}")


# Ledger

class LedgerError(VaultBridgeError):
    """Ledger store read/write failure"""


class InvalidStatusTransition(LedgerError):
    """Bridge transaction status may only move pending -> completed|failed, and only a claim completes it"""

    def __init__(self, transaction_hash: str, current: str, requested: str):
        self.transaction_hash = transaction_hash
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move {transaction_hash} from {current} to {requested}")


# External HTTP services

class PriceFeedError(VaultBridgeError):
    """Price feed returned an error or an unusable payload"""


class MerkleProofError(VaultBridgeError):
    """Bridge proof service returned an error or an unusable payload"""
