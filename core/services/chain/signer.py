"""
Transaction signing
A TransactionSender is the signing capability a caller hands to the
orchestrators; LocalAccountSender is the one backed by a private key.
"""
from typing import Any, Dict, Optional, Protocol

from eth_account import Account

from core.services.chain.chain_client import ChainClient
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

GAS_BUFFER = 1.2


class TransactionSender(Protocol):
    """Signs and broadcasts a transaction, returning its hash"""

    address: str

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        ...


class LocalAccountSender:
    """Signs with a local eth-account key and broadcasts through a ChainClient"""

    def __init__(self, private_key: str, chain: ChainClient):
        self.account = Account.from_key(private_key)
        self.chain = chain

    @property
    def address(self) -> str:
        return self.account.address

    async def build_transaction(self, tx: Dict[str, Any]) -> Dict[str, Any]:
        """Fill nonce, chain id, gas price and gas limit"""
        full = {
            "from": self.address,
            "to": ChainClient.to_checksum(tx["to"]),
            "data": tx.get("data", "0x"),
            "value": int(tx.get("value", 0)),
        }
        full["nonce"] = await self.chain.get_transaction_count(self.address, "pending")
        full["chainId"] = await self.chain.chain_id()
        full["gasPrice"] = await self.chain.gas_price()

        gas: Optional[int] = tx.get("gas")
        if gas is None:
            gas = int(await self.chain.estimate_gas(full) * GAS_BUFFER)
        full["gas"] = gas
        return full

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        transaction = await self.build_transaction(tx)
        unsigned = {key: value for key, value in transaction.items() if key != "from"}

        signed_txn = self.account.sign_transaction(unsigned)
        tx_hash = await self.chain.send_raw_transaction(signed_txn.raw_transaction)

        logger.info(f"📤 Sent tx {tx_hash} from {self.address[:10]}... to {transaction['to']}")
        return tx_hash
