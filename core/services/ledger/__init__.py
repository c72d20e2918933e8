"""
Ledger Module
Bridge deposit and withdrawal history
"""
from .transaction_history import TransactionHistoryRepository
from .withdraw_history import WithdrawHistoryRepository

__all__ = [
    'TransactionHistoryRepository',
    'WithdrawHistoryRepository',
]
