"""
Withdrawal API Routes
"""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from bridge_api.api.v1.dependencies import withdraw_repository, withdrawal_service
from core.services.errors import WithdrawalValidationError
from core.services.ledger.withdraw_history import WithdrawHistoryRepository
from core.services.withdrawal.withdrawal_service import WithdrawalService, WithdrawRequest
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def parse_withdraw_request(request: Request) -> WithdrawRequest:
    """Parse the JSON body; every failure is a 400"""
    try:
        body = await request.json()
    except ValueError:
        raise WithdrawalValidationError("Invalid JSON body")

    if not isinstance(body, dict):
        raise WithdrawalValidationError("Request body must be a JSON object")

    try:
        return WithdrawRequest.model_validate(body)
    except ValidationError as e:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in e.errors())
        raise WithdrawalValidationError("Invalid request fields", message=fields)


@router.post("/withdraw")
async def withdraw(
    request: Request,
    service: WithdrawalService = Depends(withdrawal_service),
) -> Dict[str, Any]:
    """
    Execute an admin-authorized withdrawal from the vault

    Body: amount, destinationNetwork, destinationAddress, token,
    forceUpdateGlobalExitRoot (default false), permitData (default 0x), user
    """
    withdraw_request = await parse_withdraw_request(request)
    return await service.process(withdraw_request)


@router.get("/vault-balance")
async def get_vault_balance(service: WithdrawalService = Depends(withdrawal_service)) -> Dict[str, Any]:
    """WETH liquidity held by the vault"""
    return await service.get_vault_balance()


@router.get("/contract-info")
async def get_contract_info(service: WithdrawalService = Depends(withdrawal_service)) -> Dict[str, Any]:
    return await service.get_contract_info()


@router.get("/withdraw-history/{user_address}")
async def get_withdraw_history(
    user_address: str,
    repository: WithdrawHistoryRepository = Depends(withdraw_repository),
) -> List[Dict[str, Any]]:
    """Withdrawals for one user, newest first"""
    return await repository.get_user_withdraw_history(user_address)
