"""
API v1 Routes
"""
from .balances import router as balances_router
from .transactions import router as transactions_router
from .withdraw import router as withdraw_router

__all__ = [
    "balances_router",
    "transactions_router",
    "withdraw_router",
]
