"""
Tests for call-data encoding and log decoding
"""
import pytest
from eth_utils import event_abi_to_log_topic

from core.services.chain.abi import (
    BRIDGE_EVENT_ABI,
    BRIDGE_EVENT_TOPIC,
    CLAIM_ASSET_ABI,
    ERC20_ABI,
    TRANSFER_EVENT_ABI,
    TRANSFER_EVENT_TOPIC,
    VAULT_MAIN_ABI,
    address_topic,
    decode_event_data,
    decode_function_input,
    encode_function_call,
    function_selector,
)
from core.services.errors import ChainError
from tests.fixtures.mocks import USER_ADDRESS, VAULT_ADDRESS, claim_asset_input


def test_erc20_selectors():
    assert function_selector(ERC20_ABI, "approve") == "0x095ea7b3"
    assert function_selector(ERC20_ABI, "balanceOf") == "0x70a08231"
    assert function_selector(ERC20_ABI, "decimals") == "0x313ce567"


def test_transfer_topic():
    assert TRANSFER_EVENT_TOPIC == "0xddf252ad1be2c89b69c2b069fc378daa952ba7f163c4a11628f55a4df523b3ef"


def test_bridge_event_topic_matches_abi():
    assert "0x" + event_abi_to_log_topic(BRIDGE_EVENT_ABI).hex() == BRIDGE_EVENT_TOPIC


def test_address_topic_is_left_padded():
    topic = address_topic(USER_ADDRESS)
    assert len(topic) == 66
    assert topic.endswith(USER_ADDRESS[2:].lower())
    assert topic[2:26] == "0" * 24


def test_approve_call_data_layout():
    data = encode_function_call(ERC20_ABI, "approve", [VAULT_ADDRESS, 10 ** 18])
    assert data.startswith("0x095ea7b3")
    # selector + two 32-byte words
    assert len(data) == 2 + 8 + 64 * 2
    assert data.endswith(f"{10 ** 18:064x}")


def test_request_withdraw_decodes_back():
    args = [10 ** 18, 0, USER_ADDRESS, VAULT_ADDRESS, False, b""]
    data = encode_function_call(VAULT_MAIN_ABI, "requestWithdraw", args)

    decoded = decode_function_input(VAULT_MAIN_ABI, "requestWithdraw", data)

    assert decoded["amount"] == 10 ** 18
    assert decoded["destinationNetwork"] == 0
    assert decoded["destinationAddress"].lower() == USER_ADDRESS.lower()
    assert decoded["permitData"] == b""


def test_claim_asset_global_index():
    global_index = (28 << 32) | 53
    decoded = decode_function_input(CLAIM_ASSET_ABI, "claimAsset", claim_asset_input(global_index, 5))
    assert decoded["globalIndex"] == 120259084341
    assert decoded["amount"] == 5


def test_decode_rejects_other_function():
    data = encode_function_call(ERC20_ABI, "approve", [VAULT_ADDRESS, 1])
    with pytest.raises(ChainError):
        decode_function_input(CLAIM_ASSET_ABI, "claimAsset", data)


@pytest.mark.parametrize("data", [
    "0xnothex",
    "0x",
    function_selector(CLAIM_ASSET_ABI, "claimAsset") + "00" * 4,
])
def test_malformed_input_raises_chain_error(data):
    with pytest.raises(ChainError):
        decode_function_input(CLAIM_ASSET_ABI, "claimAsset", data)


def test_short_event_data_raises_chain_error():
    with pytest.raises(ChainError):
        decode_event_data(TRANSFER_EVENT_ABI, "0x")
