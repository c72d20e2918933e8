"""
Chain Client - async RPC access for one network
Thin wrapper over AsyncWeb3 so the services can be driven by mocks in tests
"""
import asyncio
from typing import Any, Dict, List, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TransactionNotFound

from core.services.chain.abi import to_hex
from core.services.errors import ConfirmationTimeout, TransactionReverted
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class ChainClient:
    """Async JSON-RPC client bound to a single RPC URL"""

    def __init__(self, rpc_url: str, name: str = "chain"):
        self.rpc_url = rpc_url
        self.name = name
        self._w3: Optional[AsyncWeb3] = None

    @property
    def w3(self) -> AsyncWeb3:
        """Lazy AsyncWeb3 connection"""
        if self._w3 is None:
            logger.info(f"🔗 Connecting to {self.name} RPC: {self.rpc_url}")
            self._w3 = AsyncWeb3(AsyncHTTPProvider(self.rpc_url))
        return self._w3

    @staticmethod
    def to_checksum(address: str) -> str:
        return AsyncWeb3.to_checksum_address(address)

    def contract(self, address: str, abi: List[Dict[str, Any]]):
        return self.w3.eth.contract(address=self.to_checksum(address), abi=abi)

    async def call_function(self, address: str, abi: List[Dict[str, Any]], name: str, *args: Any) -> Any:
        """Read-only contract call"""
        contract = self.contract(address, abi)
        return await getattr(contract.functions, name)(*args).call()

    async def get_balance(self, address: str) -> int:
        return await self.w3.eth.get_balance(self.to_checksum(address))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return await self.w3.eth.get_transaction_count(self.to_checksum(address), block)

    async def gas_price(self) -> int:
        return await self.w3.eth.gas_price

    async def chain_id(self) -> int:
        return await self.w3.eth.chain_id

    async def block_number(self) -> int:
        return await self.w3.eth.block_number

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return await self.w3.eth.estimate_gas(tx)

    async def call(self, tx: Dict[str, Any]) -> bytes:
        """eth_call, used to simulate a write before signing it"""
        return await self.w3.eth.call(tx)

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        tx_hash = await self.w3.eth.send_raw_transaction(raw_tx)
        return to_hex(tx_hash)

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        return await self.w3.eth.get_transaction(tx_hash)

    async def get_logs(self, filter_params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self.w3.eth.get_logs(filter_params)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Receipt, or None while the transaction is not mined yet"""
        try:
            return await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None

    async def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        max_poll_interval: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Poll for a receipt with exponential backoff until a deadline

        Args:
            tx_hash: Transaction hash
            timeout: Seconds before giving up (default from settings)
            poll_interval: First delay between polls
            max_poll_interval: Cap for the doubling delay

        Returns:
            Transaction receipt

        Raises:
            ConfirmationTimeout: no receipt before the deadline
        """
        timeout = settings.web3.confirmation_timeout if timeout is None else timeout
        delay = settings.web3.confirmation_poll_interval if poll_interval is None else poll_interval
        max_delay = settings.web3.confirmation_max_poll_interval if max_poll_interval is None else max_poll_interval

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        logger.info(f"⏳ Waiting for {tx_hash} on {self.name} (timeout {timeout:.0f}s)")

        while True:
            try:
                receipt = await self.get_transaction_receipt(tx_hash)
            except Exception as e:
                # RPC hiccup while polling; the deadline still bounds the wait
                logger.warning(f"⚠️ Receipt poll failed for {tx_hash}: {e}")
                receipt = None

            if receipt is not None:
                logger.info(f"✅ {tx_hash} confirmed in block {receipt['blockNumber']}")
                return receipt

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeout(tx_hash, timeout)

            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * 2, max_delay)


def ensure_success(receipt: Dict[str, Any], tx_hash: str) -> Dict[str, Any]:
    """Raise TransactionReverted for a status-0 receipt"""
    if receipt.get("status", 1) == 0:
        raise TransactionReverted(tx_hash, receipt.get("blockNumber"))
    return receipt


_clients: Dict[str, ChainClient] = {}


def get_source_chain() -> ChainClient:
    """Shared client for the source chain (Sepolia)"""
    if "source" not in _clients:
        _clients["source"] = ChainClient(settings.web3.source_rpc_url, name="sepolia")
    return _clients["source"]


def get_katana_chain() -> ChainClient:
    """Shared client for the destination chain (Katana)"""
    if "katana" not in _clients:
        _clients["katana"] = ChainClient(settings.web3.katana_rpc_url, name="katana")
    return _clients["katana"]
