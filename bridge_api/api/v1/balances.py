"""
Balance API Routes
Failed reads come back inside the payload (error field), not as HTTP errors.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from bridge_api.api.v1.dependencies import balance_service, price_ticker
from core.services.balance.balance_service import BalanceService
from core.services.balance.price_feed import PriceTicker

router = APIRouter()


@router.get("/balances/{wallet_address}")
async def get_balances(
    wallet_address: str,
    tokens: Optional[List[str]] = Query(None),
    service: BalanceService = Depends(balance_service),
) -> Dict[str, Any]:
    """
    Native and token balances for a wallet

    Args:
        wallet_address: Wallet address
        tokens: Token addresses (repeatable); defaults to WETH/USDC
    """
    balances = await service.get_balances(wallet_address, tokens)
    return {
        "walletAddress": wallet_address,
        "balances": {key: result.to_dict() for key, result in balances.items()},
    }


@router.get("/vault-position/{wallet_address}")
async def get_vault_position(
    wallet_address: str,
    service: BalanceService = Depends(balance_service),
) -> Dict[str, Any]:
    result = await service.get_vault_position(wallet_address)
    return {"walletAddress": wallet_address, **result.to_dict()}


@router.get("/price/eth")
async def get_eth_price(
    refresh: bool = False,
    ticker: PriceTicker = Depends(price_ticker),
) -> Dict[str, Any]:
    """Latest ETH/USD price; refresh=true forces a fetch"""
    if refresh or ticker.loading:
        await ticker.refetch()
    return ticker.snapshot()
