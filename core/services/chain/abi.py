"""
Contract ABIs and call-data encoding
Fragments for the ERC-20 tokens, the LxLy bridge, the vault-bridge and the
vault main contract. Selectors and argument order must match the deployed
bytecode exactly.
"""
from typing import Any, Dict, List, Sequence, Union

from eth_abi import decode, encode
from eth_utils import event_abi_to_log_topic, function_abi_to_4byte_selector

from core.services.errors import ChainError

# ERC20 read + approve
ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"}
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function"
    }
]

# LxLy bridge (source chain)
BRIDGE_ABI = [
    {
        "inputs": [
            {"name": "destinationNetwork", "type": "uint32"},
            {"name": "destinationAddress", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "token", "type": "address"},
            {"name": "forceUpdateGlobalExitRoot", "type": "bool"},
            {"name": "permitData", "type": "bytes"}
        ],
        "name": "bridgeAsset",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    }
]

# Vault-bridge: deposit native asset and bridge in one transaction
VAULT_BRIDGE_ABI = [
    {
        "inputs": [
            {"name": "destinationAddress", "type": "address"},
            {"name": "destinationNetworkId", "type": "uint32"},
            {"name": "forceUpdateGlobalExitRoot", "type": "bool"}
        ],
        "name": "depositGasTokenAndBridge",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    }
]


def _address_getter(name: str) -> Dict[str, Any]:
    return {
        "inputs": [],
        "name": name,
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }


# Vault main contract (destination chain)
VAULT_MAIN_ABI = [
    _address_getter("ADMIN_ADDRESS"),
    _address_getter("BRIDGE_ADDRESS"),
    _address_getter("VAULT_ADDRESS"),
    _address_getter("WETH_ADDRESS"),
    {
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "destinationNetwork", "type": "uint32"},
            {"name": "destinationAddress", "type": "address"},
            {"name": "token", "type": "address"},
            {"name": "forceUpdateGlobalExitRoot", "type": "bool"},
            {"name": "permitData", "type": "bytes"}
        ],
        "name": "requestWithdraw",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [{"name": "user", "type": "address"}],
        "name": "checkBalance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "user", "type": "address"}
        ],
        "name": "executeToVault",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "wrapEthToWeth",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "getContractBalances",
        "outputs": [
            {"name": "ethBalance", "type": "uint256"},
            {"name": "wethBalance", "type": "uint256"}
        ],
        "stateMutability": "view",
        "type": "function"
    }
]

# Claim side of the bridge (destination chain)
CLAIM_ASSET_ABI = [
    {
        "inputs": [
            {"name": "smtProofLocalExitRoot", "type": "bytes32[32]"},
            {"name": "smtProofRollupExitRoot", "type": "bytes32[32]"},
            {"name": "globalIndex", "type": "uint256"},
            {"name": "mainnetExitRoot", "type": "bytes32"},
            {"name": "rollupExitRoot", "type": "bytes32"},
            {"name": "originNetwork", "type": "uint32"},
            {"name": "originTokenAddress", "type": "address"},
            {"name": "destinationNetwork", "type": "uint32"},
            {"name": "destinationAddress", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "metadata", "type": "bytes"}
        ],
        "name": "claimAsset",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

BANK_ABI = [
    {
        "inputs": [
            {"name": "smtProofLocalExitRoot", "type": "bytes32[32]"},
            {"name": "smtProofRollupExitRoot", "type": "bytes32[32]"},
            {"name": "globalIndex", "type": "uint256"},
            {"name": "mainnetExitRoot", "type": "bytes32"},
            {"name": "rollupExitRoot", "type": "bytes32"},
            {"name": "destinationAddress", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "receiver", "type": "address"},
            {"name": "metadata", "type": "bytes"}
        ],
        "name": "claimAndRedeem",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function"
    }
]

BRIDGE_EVENT_ABI = {
    "anonymous": False,
    "inputs": [
        {"indexed": False, "name": "leafType", "type": "uint8"},
        {"indexed": False, "name": "originNetwork", "type": "uint32"},
        {"indexed": False, "name": "originAddress", "type": "address"},
        {"indexed": False, "name": "destinationNetwork", "type": "uint32"},
        {"indexed": False, "name": "destinationAddress", "type": "address"},
        {"indexed": False, "name": "amount", "type": "uint256"},
        {"indexed": False, "name": "metadata", "type": "bytes"},
        {"indexed": False, "name": "depositCount", "type": "uint32"}
    ],
    "name": "BridgeEvent",
    "type": "event"
}

TRANSFER_EVENT_ABI = {
    "anonymous": False,
    "inputs": [
        {"indexed": True, "name": "from", "type": "address"},
        {"indexed": True, "name": "to", "type": "address"},
        {"indexed": False, "name": "value", "type": "uint256"}
    ],
    "name": "Transfer",
    "type": "event"
}

# keccak256("BridgeEvent(uint8,uint32,address,uint32,address,uint256,bytes,uint32)")
BRIDGE_EVENT_TOPIC = "0x501781209a1f8899323b96b4ef08b168df93e0a90c673d1e4cce39366cb62f9b"
TRANSFER_EVENT_TOPIC = "0x" + event_abi_to_log_topic(TRANSFER_EVENT_ABI).hex()

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

HexLike = Union[str, bytes]


def to_bytes(value: HexLike) -> bytes:
    """Hex string ("0x..."), HexBytes or bytes to raw bytes"""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = value[2:] if value.startswith(("0x", "0X")) else value
    return bytes.fromhex(text)


def to_hex(value: HexLike) -> str:
    """Normalize to a lowercase 0x-prefixed hex string"""
    return "0x" + to_bytes(value).hex()


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte log topic"""
    return "0x" + to_bytes(address).rjust(32, b"\x00").hex()


def get_function_abi(abi: List[Dict[str, Any]], name: str) -> Dict[str, Any]:
    for entry in abi:
        if entry.get("type") == "function" and entry.get("name") == name:
            return entry
    raise KeyError(f"Function {name} not found in ABI")


def _input_types(fn_abi: Dict[str, Any]) -> List[str]:
    return [inp["type"] for inp in fn_abi["inputs"]]


def function_selector(abi: List[Dict[str, Any]], name: str) -> str:
    """4-byte selector as 0x-prefixed hex"""
    return "0x" + function_abi_to_4byte_selector(get_function_abi(abi, name)).hex()


def encode_function_call(abi: List[Dict[str, Any]], name: str, args: Sequence[Any]) -> str:
    """
    Encode a contract call: selector followed by the ABI-encoded arguments

    Args:
        abi: Contract ABI containing the function
        name: Function name
        args: Positional arguments in declaration order

    Returns:
        0x-prefixed call data
    """
    fn_abi = get_function_abi(abi, name)
    selector = function_abi_to_4byte_selector(fn_abi)
    return "0x" + (selector + encode(_input_types(fn_abi), list(args))).hex()


def decode_function_input(abi: List[Dict[str, Any]], name: str, data: HexLike) -> Dict[str, Any]:
    """
    Decode transaction input data for a known function

    Raises:
        ChainError: selector mismatch or malformed arguments
    """
    fn_abi = get_function_abi(abi, name)
    selector = function_abi_to_4byte_selector(fn_abi)
    try:
        raw = to_bytes(data)
    except (TypeError, ValueError) as e:
        raise ChainError(f"Input data is not hex: {e}") from e
    if raw[:4] != selector:
        raise ChainError(f"Input data is not a {name} call")
    try:
        values = decode(_input_types(fn_abi), raw[4:])
    except Exception as e:
        raise ChainError(f"Could not decode {name} input: {e}") from e
    return {inp["name"]: value for inp, value in zip(fn_abi["inputs"], values)}


def decode_event_data(event_abi: Dict[str, Any], data: HexLike) -> Dict[str, Any]:
    """
    Decode the non-indexed part of a log

    Raises:
        ChainError: malformed log data
    """
    inputs = [inp for inp in event_abi["inputs"] if not inp.get("indexed")]
    try:
        values = decode([inp["type"] for inp in inputs], to_bytes(data))
    except Exception as e:
        raise ChainError(f"Could not decode {event_abi.get('name', 'event')} data: {e}") from e
    return {inp["name"]: value for inp, value in zip(inputs, values)}
