"""
Bridge Service - source chain -> Katana deposits through the LxLy bridge
Handles approve -> bridgeAsset for ERC-20s, a single payable bridgeAsset
for native ETH, and depositGasTokenAndBridge through the vault bridge.
Every broadcast bridge transaction is recorded in the ledger as pending.
"""
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from core.services.chain.abi import (
    BRIDGE_ABI,
    BRIDGE_EVENT_ABI,
    BRIDGE_EVENT_TOPIC,
    ERC20_ABI,
    VAULT_BRIDGE_ABI,
    decode_event_data,
    encode_function_call,
    to_hex,
)
from core.services.chain.chain_client import ChainClient, ensure_success, get_source_chain
from core.services.chain.signer import TransactionSender
from core.services.errors import TransactionReverted
from core.services.ledger.transaction_history import TransactionHistoryRepository
from core.database.models import STATUS_FAILED
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class BridgeStatus(str, Enum):
    IDLE = "idle"
    APPROVING = "approving"
    BRIDGING = "bridging"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class BridgeState:
    status: BridgeStatus = BridgeStatus.IDLE
    message: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"status": self.status.value, "message": self.message}


@dataclass
class BridgeParams:
    """
    Bridge request
    amount is in base units of the token (wei for ETH)
    """
    token_address: str
    amount: int
    source_network: Optional[int] = None
    destination_network: Optional[int] = None
    force_update_global_exit_root: bool = True
    destination_address: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int) or self.amount <= 0:
            raise ValueError(f"Bridge amount must be a positive integer, got {self.amount!r}")
        if self.source_network is None:
            self.source_network = settings.networks.source_network_id
        if self.destination_network is None:
            self.destination_network = settings.networks.destination_network_id


@dataclass
class BridgeResult:
    transaction_hash: str
    block_number: Optional[int]
    deposit_count: Optional[int] = None
    approve_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "depositCount": self.deposit_count,
            "approveHash": self.approve_hash,
        }


StateCallback = Callable[[BridgeState], Union[None, Awaitable[None]]]


def extract_deposit_count(receipt: Dict[str, Any]) -> Optional[int]:
    """
    Read depositCount from the first BridgeEvent log of a receipt

    Returns:
        Deposit count, or None when no decodable BridgeEvent is present
    """
    for log in receipt.get("logs") or []:
        topics = log.get("topics") or []
        if not topics or to_hex(topics[0]) != BRIDGE_EVENT_TOPIC:
            continue
        try:
            event = decode_event_data(BRIDGE_EVENT_ABI, log["data"])
            return int(event["depositCount"])
        except Exception as e:
            logger.warning(f"⚠️ Could not decode BridgeEvent: {e}")
            return None
    return None


class BridgeService:
    """
    Bridge Service
    - bridge_asset: ERC-20 (approve first) or native ETH
    - deposit_gas_token_and_bridge: native ETH through the vault bridge
    """

    def __init__(
        self,
        chain: Optional[ChainClient] = None,
        ledger: Optional[TransactionHistoryRepository] = None,
        bridge_address: Optional[str] = None,
        vault_bridge_address: Optional[str] = None,
        native_token_address: Optional[str] = None,
        default_destination: Optional[str] = None,
    ):
        self.chain = chain or get_source_chain()
        self.ledger = ledger or TransactionHistoryRepository()
        self.bridge_address = bridge_address or settings.contracts.bridge_address
        self.vault_bridge_address = vault_bridge_address or settings.contracts.vault_bridge_address
        self.native_token_address = native_token_address or settings.contracts.native_token_address
        self.default_destination = default_destination or settings.contracts.destination_vault_address

    def is_native(self, token_address: str) -> bool:
        return token_address.lower() == self.native_token_address.lower()

    def _destination(self, params: BridgeParams) -> str:
        destination = params.destination_address or self.default_destination
        if not destination:
            raise ValueError("No destination address: set NAILONG_VAULT_ADDRESS or pass destination_address")
        return ChainClient.to_checksum(destination)

    async def bridge_asset(
        self,
        params: BridgeParams,
        sender: TransactionSender,
        on_state_change: Optional[StateCallback] = None,
    ) -> BridgeResult:
        """
        Bridge a token or native ETH to the destination network

        Args:
            params: Bridge request
            sender: Signing capability of the bridging wallet
            on_state_change: Optional callback (sync or async) for progress

        Returns:
            BridgeResult

        Raises:
            TransactionReverted: approve or bridge transaction reverted
            ConfirmationTimeout: receipt not seen before the deadline
        """
        emit = _StateEmitter(on_state_change)
        approve_hash = None

        try:
            destination = self._destination(params)
            bridge_args = [
                params.destination_network,
                destination,
                params.amount,
                ChainClient.to_checksum(params.token_address),
                params.force_update_global_exit_root,
                b"",
            ]
            call_data = encode_function_call(BRIDGE_ABI, "bridgeAsset", bridge_args)

            if self.is_native(params.token_address):
                await emit(BridgeStatus.BRIDGING, "Preparing bridge transaction...")
                tx = {"to": self.bridge_address, "data": call_data, "value": params.amount}
            else:
                await emit(BridgeStatus.APPROVING, "Approving token for bridge...")
                approve_data = encode_function_call(
                    ERC20_ABI, "approve", [ChainClient.to_checksum(self.bridge_address), params.amount]
                )
                approve_hash = await sender.send_transaction(
                    {"to": params.token_address, "data": approve_data, "value": 0}
                )
                logger.info(f"🔓 Approve tx sent: {approve_hash}")

                await emit(BridgeStatus.APPROVING, "Approval submitted! Waiting for confirmation...")
                approve_receipt = await self.chain.wait_for_receipt(approve_hash)
                ensure_success(approve_receipt, approve_hash)

                await emit(BridgeStatus.APPROVING, "Approval confirmed! Preparing bridge transaction...")
                await emit(BridgeStatus.BRIDGING, "Sending bridge transaction...")
                tx = {"to": self.bridge_address, "data": call_data, "value": 0}

            tx_hash, receipt, deposit_count = await self._send_bridge_transaction(
                sender, tx, params, params.token_address, emit,
                "Bridge transaction submitted! Waiting for confirmation...",
            )

            await emit(BridgeStatus.SUCCESS, "Bridge transaction successful!")
            return BridgeResult(
                transaction_hash=tx_hash,
                block_number=receipt.get("blockNumber"),
                deposit_count=deposit_count,
                approve_hash=approve_hash,
            )

        except Exception as e:
            logger.error(f"❌ Bridge error: {e}")
            await emit(BridgeStatus.ERROR, f"Bridge failed: {e}")
            raise

    async def deposit_gas_token_and_bridge(
        self,
        params: BridgeParams,
        sender: TransactionSender,
        on_state_change: Optional[StateCallback] = None,
    ) -> BridgeResult:
        """
        Deposit native ETH into the vault bridge and bridge it in one call

        The amount is sent as msg.value; the ledger row uses the native sentinel.
        """
        emit = _StateEmitter(on_state_change)

        try:
            if not self.vault_bridge_address:
                raise ValueError("VAULT_BRIDGE_ADDRESS is not configured")

            await emit(BridgeStatus.BRIDGING, "Preparing deposit and bridge transaction...")
            call_data = encode_function_call(
                VAULT_BRIDGE_ABI,
                "depositGasTokenAndBridge",
                [self._destination(params), params.destination_network, params.force_update_global_exit_root],
            )

            await emit(BridgeStatus.BRIDGING, "Sending deposit and bridge transaction...")
            tx = {"to": self.vault_bridge_address, "data": call_data, "value": params.amount}

            tx_hash, receipt, deposit_count = await self._send_bridge_transaction(
                sender, tx, params, self.native_token_address, emit,
                "Transaction submitted! Waiting for confirmation...",
            )

            await emit(BridgeStatus.SUCCESS, "Deposit and bridge successful!")
            return BridgeResult(
                transaction_hash=tx_hash,
                block_number=receipt.get("blockNumber"),
                deposit_count=deposit_count,
            )

        except Exception as e:
            logger.error(f"❌ Deposit and bridge error: {e}")
            await emit(BridgeStatus.ERROR, f"Deposit and bridge failed: {e}")
            raise

    async def _send_bridge_transaction(
        self,
        sender: TransactionSender,
        tx: Dict[str, Any],
        params: BridgeParams,
        token_address: str,
        emit: "_StateEmitter",
        submitted_message: str,
    ):
        """Broadcast, record pending, confirm, then attach the deposit count"""
        tx_hash = await sender.send_transaction(tx)
        logger.info(f"🌉 Bridge tx sent: {tx_hash}")

        await self._record_pending(sender.address, params, token_address, tx_hash)
        await emit(BridgeStatus.BRIDGING, submitted_message)

        receipt = await self.chain.wait_for_receipt(tx_hash)
        if receipt.get("status", 1) == 0:
            await self._mark_failed(tx_hash)
            raise TransactionReverted(tx_hash, receipt.get("blockNumber"))

        deposit_count = extract_deposit_count(receipt)
        if deposit_count is not None:
            logger.info(f"🔢 Deposit count for {tx_hash}: {deposit_count}")
            await self._record_deposit_count(tx_hash, deposit_count)
        else:
            logger.warning(f"⚠️ No BridgeEvent found in {tx_hash}")

        return tx_hash, receipt, deposit_count

    async def _record_pending(self, user_address: str, params: BridgeParams, token_address: str, tx_hash: str) -> None:
        try:
            await self.ledger.insert_bridge_transaction(
                user_address=user_address,
                amount=params.amount,
                token_address=token_address,
                source_network=params.source_network,
                destination_network=params.destination_network,
                transaction_hash=tx_hash,
            )
        except Exception as e:
            logger.error(f"❌ Failed to record bridge transaction {tx_hash}: {e}")

    async def _record_deposit_count(self, tx_hash: str, deposit_count: int) -> None:
        try:
            await self.ledger.set_deposit_count(tx_hash, deposit_count)
        except Exception as e:
            logger.error(f"❌ Failed to store deposit count for {tx_hash}: {e}")

    async def _mark_failed(self, tx_hash: str) -> None:
        try:
            await self.ledger.update_transaction_status(tx_hash, STATUS_FAILED)
        except Exception as e:
            logger.error(f"❌ Failed to mark {tx_hash} as failed: {e}")


class _StateEmitter:
    """Delivers BridgeState updates to a sync or async callback"""

    def __init__(self, callback: Optional[StateCallback]):
        self.callback = callback
        self.state = BridgeState()

    async def __call__(self, status: BridgeStatus, message: str) -> None:
        self.state = BridgeState(status=status, message=message)
        if self.callback is None:
            return
        result = self.callback(self.state)
        if inspect.isawaitable(result):
            await result


_bridge_service: Optional[BridgeService] = None


def get_bridge_service() -> BridgeService:
    """Get or create BridgeService instance"""
    global _bridge_service
    if _bridge_service is None:
        _bridge_service = BridgeService()
    return _bridge_service
