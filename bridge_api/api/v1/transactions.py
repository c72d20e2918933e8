"""
Transaction History API Routes
"""
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from bridge_api.api.v1.dependencies import transaction_repository
from core.services.ledger.transaction_history import TransactionHistoryRepository

router = APIRouter()

StatusFilter = Optional[Literal["pending", "completed", "failed"]]


@router.get("/transaction-history/{user_address}")
async def get_user_transaction_history(
    user_address: str,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: Optional[int] = Query(None, ge=0),
    status: StatusFilter = Query(None),
    repository: TransactionHistoryRepository = Depends(transaction_repository),
) -> List[Dict[str, Any]]:
    """
    Bridge transactions of one user, newest first

    Args:
        user_address: Wallet address (case-insensitive)
        limit: Page size
        offset: Rows to skip (page size 10 when limit is omitted)
        status: pending | completed | failed
    """
    return await repository.get_user_transaction_history(user_address, limit=limit, offset=offset, status=status)


@router.get("/transaction-history")
async def get_all_transactions(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    offset: Optional[int] = Query(None, ge=0),
    status: StatusFilter = Query(None),
    source_network: Optional[int] = Query(None, alias="sourceNetwork"),
    destination_network: Optional[int] = Query(None, alias="destinationNetwork"),
    repository: TransactionHistoryRepository = Depends(transaction_repository),
) -> List[Dict[str, Any]]:
    """All bridge transactions, newest first"""
    return await repository.get_all_transactions(
        limit=limit,
        offset=offset,
        status=status,
        source_network=source_network,
        destination_network=destination_network,
    )


@router.get("/transaction-stats")
async def get_transaction_stats(
    repository: TransactionHistoryRepository = Depends(transaction_repository),
) -> Dict[str, Any]:
    """Counts per status and total completed volume (base units, string)"""
    return await repository.get_transaction_stats()
