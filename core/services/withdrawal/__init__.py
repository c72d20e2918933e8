"""
Withdrawal Service Module
"""
from .withdrawal_service import WithdrawalService, WithdrawRequest, get_withdrawal_service

__all__ = [
    'WithdrawalService',
    'WithdrawRequest',
    'get_withdrawal_service',
]
