"""
FastAPI dependency providers
Tests swap these out with app.dependency_overrides.
"""
from core.services.balance.balance_service import BalanceService, get_balance_service
from core.services.balance.price_feed import PriceTicker, get_price_ticker
from core.services.ledger.transaction_history import TransactionHistoryRepository
from core.services.ledger.withdraw_history import WithdrawHistoryRepository
from core.services.withdrawal.withdrawal_service import WithdrawalService, get_withdrawal_service


def withdrawal_service() -> WithdrawalService:
    return get_withdrawal_service()


def transaction_repository() -> TransactionHistoryRepository:
    return TransactionHistoryRepository()


def withdraw_repository() -> WithdrawHistoryRepository:
    return WithdrawHistoryRepository()


def balance_service() -> BalanceService:
    return get_balance_service()


def price_ticker() -> PriceTicker:
    return get_price_ticker()
