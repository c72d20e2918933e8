"""
API Routes for the Vault Bridge service
"""
from fastapi import APIRouter

from bridge_api.api.v1 import (
    balances_router,
    transactions_router,
    withdraw_router,
)

# Main API router
api_router = APIRouter()

# Paths are flat under the /api prefix
api_router.include_router(
    withdraw_router,
    tags=["withdraw"],
)

api_router.include_router(
    transactions_router,
    tags=["transactions"],
)

api_router.include_router(
    balances_router,
    tags=["balances"],
)
