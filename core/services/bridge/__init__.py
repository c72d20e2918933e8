"""
Bridge Service Module
Handles source chain -> Katana bridging
"""
from .bridge_service import (
    BridgeParams,
    BridgeResult,
    BridgeService,
    BridgeState,
    BridgeStatus,
    extract_deposit_count,
    get_bridge_service,
)

__all__ = [
    'BridgeParams',
    'BridgeResult',
    'BridgeService',
    'BridgeState',
    'BridgeStatus',
    'extract_deposit_count',
    'get_bridge_service',
]
