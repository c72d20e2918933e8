"""
Mock chain access for service tests
Provides mocked RPC clients, signers and log/receipt builders so no test
touches a real network.
"""
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from eth_abi import encode

from core.services.chain.abi import (
    BRIDGE_EVENT_TOPIC,
    CLAIM_ASSET_ABI,
    TRANSFER_EVENT_TOPIC,
    ZERO_ADDRESS,
    address_topic,
    encode_function_call,
    to_bytes,
)

OPERATOR_ADDRESS = "0x1111111111111111111111111111111111111111"
USER_ADDRESS = "0x2222222222222222222222222222222222222222"
TOKEN_ADDRESS = "0x3333333333333333333333333333333333333333"
VAULT_ADDRESS = "0x4444444444444444444444444444444444444444"
WETH_ADDRESS = "0x5555555555555555555555555555555555555555"
DESTINATION_VAULT = "0x6666666666666666666666666666666666666666"
BRIDGE_ADDRESS = "0x528e26b25a34a4A5d0dbDa1d57D318153d2ED582"
VAULT_BRIDGE_ADDRESS = "0x7777777777777777777777777777777777777777"
NATIVE_TOKEN = ZERO_ADDRESS

ZERO_HASH = b"\x00" * 32


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


def make_receipt(block_number: int = 100, status: int = 1, logs: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"blockNumber": block_number, "status": status, "logs": logs or []}


def bridge_event_log(deposit_count: int, amount: int = 10 ** 18) -> Dict[str, Any]:
    """BridgeEvent log as emitted by the LxLy bridge"""
    data = encode(
        ["uint8", "uint32", "address", "uint32", "address", "uint256", "bytes", "uint32"],
        [0, 0, NATIVE_TOKEN, 29, DESTINATION_VAULT, amount, b"", deposit_count],
    )
    return {
        "address": BRIDGE_ADDRESS,
        "topics": [to_bytes(BRIDGE_EVENT_TOPIC)],
        "data": data,
    }


def transfer_log(value: int, recipient: str, block_number: int, transaction_hash: str) -> Dict[str, Any]:
    """Claim-token mint (Transfer from the zero address)"""
    return {
        "topics": [
            to_bytes(TRANSFER_EVENT_TOPIC),
            to_bytes(address_topic(ZERO_ADDRESS)),
            to_bytes(address_topic(recipient)),
        ],
        "data": encode(["uint256"], [value]),
        "blockNumber": block_number,
        "transactionHash": transaction_hash,
    }


def claim_asset_input(global_index: int, amount: int, destination: str = USER_ADDRESS) -> str:
    """claimAsset call data for a claim transaction"""
    return encode_function_call(
        CLAIM_ASSET_ABI,
        "claimAsset",
        [
            [ZERO_HASH] * 32,
            [ZERO_HASH] * 32,
            global_index,
            ZERO_HASH,
            ZERO_HASH,
            0,
            NATIVE_TOKEN,
            29,
            destination,
            amount,
            b"",
        ],
    )


def make_sender(address: str = OPERATOR_ADDRESS, hashes: Optional[Iterable[str]] = None) -> Mock:
    """Signer mock; send_transaction returns the given hashes in order"""
    sender = Mock()
    sender.address = address
    sender.send_transaction = AsyncMock(side_effect=list(hashes or [tx_hash(i) for i in range(1, 11)]))
    return sender


def make_chain(receipt: Optional[Dict[str, Any]] = None) -> Mock:
    """ChainClient mock with every RPC method as an AsyncMock"""
    chain = Mock()
    chain.get_balance = AsyncMock(return_value=0)
    chain.call_function = AsyncMock(return_value=0)
    chain.call = AsyncMock(return_value=b"")
    chain.wait_for_receipt = AsyncMock(return_value=receipt or make_receipt())
    chain.get_logs = AsyncMock(return_value=[])
    chain.get_transaction = AsyncMock(return_value={})
    chain.block_number = AsyncMock(return_value=0)
    return chain


def make_contract_reader(values: Dict[str, Any]):
    """call_function side effect answering by function name"""
    async def _call(address, abi, name, *args):
        value = values[name]
        if isinstance(value, Exception):
            raise value
        return value(*args) if callable(value) else value

    return _call


@pytest.fixture
def mock_chain():
    return make_chain()


@pytest.fixture
def mock_sender():
    return make_sender()
