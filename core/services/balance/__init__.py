"""
Balance Module
Wallet balances, vault positions and the ETH price
"""
from .balance_service import BalanceResult, BalanceService, get_balance_service
from .price_feed import PriceFeedClient, PriceTicker, get_price_ticker

__all__ = [
    'BalanceResult',
    'BalanceService',
    'get_balance_service',
    'PriceFeedClient',
    'PriceTicker',
    'get_price_ticker',
]
