"""
Claim Reconciler - completes pending bridge deposits once they are claimed
Watches claim-token mints to the payout contract on Katana, maps each claim
back to its deposit count and completes the matching ledger row, then moves
the claimed funds into the vault for that user.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.services.chain.abi import (
    CLAIM_ASSET_ABI,
    TRANSFER_EVENT_ABI,
    TRANSFER_EVENT_TOPIC,
    VAULT_MAIN_ABI,
    ZERO_ADDRESS,
    address_topic,
    decode_event_data,
    decode_function_input,
    encode_function_call,
)
from core.services.chain.chain_client import ChainClient, ensure_success, get_katana_chain
from core.services.chain.signer import LocalAccountSender, TransactionSender
from core.services.errors import ChainError
from core.services.ledger.transaction_history import TransactionHistoryRepository
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

DEPOSIT_COUNT_MASK = 0xFFFFFFFF


def deposit_count_from_global_index(global_index: int) -> int:
    """Deposit count is the low 32 bits of the global index"""
    return global_index & DEPOSIT_COUNT_MASK


class ClaimReconciler:
    """
    Poll loop over Transfer(0x0 -> claim recipient) logs of the claim token
    - one cycle scans cursor..latest block
    - a log that is not a decodable claimAsset mint is skipped for good
    - any other failing log is logged and retried next cycle
    """

    def __init__(
        self,
        chain: Optional[ChainClient] = None,
        ledger: Optional[TransactionHistoryRepository] = None,
        sender: Optional[TransactionSender] = None,
        poll_interval: Optional[int] = None,
        start_block: Optional[int] = None,
    ):
        self.chain = chain or get_katana_chain()
        self.ledger = ledger or TransactionHistoryRepository()
        self._sender = sender
        self.poll_interval = poll_interval or settings.reconciler.interval_seconds
        self.cursor = settings.contracts.reconciler_start_block if start_block is None else start_block

        self.token_address = settings.contracts.claim_token_address
        self.recipient_address = settings.contracts.claim_recipient_address
        self.payout_address = settings.contracts.payout_contract_address

        self.running = False

        # Stats
        self.poll_count = 0
        self.log_count = 0
        self.completed_count = 0
        self.payout_count = 0
        self.skipped_count = 0
        self.error_count = 0
        self.consecutive_errors = 0
        self.last_poll_time: Optional[datetime] = None

    @property
    def sender(self) -> TransactionSender:
        if self._sender is None:
            if not settings.web3.operator_private_key:
                raise ValueError("OPERATOR_PRIVATE_KEY is not configured")
            self._sender = LocalAccountSender(settings.web3.operator_private_key, self.chain)
        return self._sender

    async def start_polling(self) -> None:
        """Main polling loop"""
        self.running = True
        logger.info(f"🔁 ClaimReconciler started (interval: {self.poll_interval}s, from block {self.cursor})")

        while self.running:
            try:
                await self.poll_cycle()
                self.consecutive_errors = 0
                await asyncio.sleep(self.poll_interval)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"❌ ClaimReconciler cycle error: {e}")
                self.consecutive_errors += 1
                await asyncio.sleep(min(self.poll_interval * 2, 60 * self.consecutive_errors))

    async def stop_polling(self) -> None:
        self.running = False
        logger.info("🔁 ClaimReconciler stopped")

    def get_stats(self) -> Dict[str, Any]:
        return {
            'poll_count': self.poll_count,
            'log_count': self.log_count,
            'completed_count': self.completed_count,
            'payout_count': self.payout_count,
            'skipped_count': self.skipped_count,
            'error_count': self.error_count,
            'consecutive_errors': self.consecutive_errors,
            'cursor': self.cursor,
            'last_poll_time': self.last_poll_time.isoformat() if self.last_poll_time else None,
        }

    async def poll_cycle(self) -> None:
        """Scan cursor..latest and process each claim mint"""
        latest_block = await self.chain.block_number()
        self.poll_count += 1
        self.last_poll_time = datetime.now(timezone.utc)

        if latest_block < self.cursor:
            logger.debug(f"No new blocks (cursor {self.cursor}, latest {latest_block})")
            return

        logs = await self.chain.get_logs({
            "address": ChainClient.to_checksum(self.token_address),
            "topics": [
                TRANSFER_EVENT_TOPIC,
                address_topic(ZERO_ADDRESS),
                address_topic(self.recipient_address),
            ],
            "fromBlock": self.cursor,
            "toBlock": latest_block,
        })
        logger.info(f"🔎 Found {len(logs)} claim transfers in blocks {self.cursor}..{latest_block}")

        next_cursor = latest_block + 1
        for log in logs:
            self.log_count += 1
            try:
                await self.process_log(log)
            except Exception as e:
                self.error_count += 1
                logger.error(f"❌ Failed to process claim log {log.get('transactionHash')}: {e}")
                # Rescan from the failed block; completed rows never match twice
                next_cursor = min(next_cursor, int(log["blockNumber"]))

        self.cursor = next_cursor

    async def process_log(self, log: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Complete the ledger row behind one claim mint and pay it out

        Returns:
            Completed ledger row, or None when the log was skipped or no unique
            pending row matched
        """
        transaction = await self.chain.get_transaction(log["transactionHash"])
        try:
            value = int(decode_event_data(TRANSFER_EVENT_ABI, log["data"])["value"])
            claim = decode_function_input(CLAIM_ASSET_ABI, "claimAsset", transaction.get("input", "0x"))
        except ChainError as e:
            # Undecodable on every rescan, so it must not hold the cursor back
            self.skipped_count += 1
            logger.warning(f"⚠️ Skipping claim log {log.get('transactionHash')}: {e}")
            return None

        deposit_count = deposit_count_from_global_index(int(claim["globalIndex"]))
        logger.info(f"🧾 Claim of {value} for deposit count {deposit_count}")

        row = await self.ledger.complete_pending_by_deposit_count(deposit_count)
        if row is None:
            return None
        self.completed_count += 1

        await self.execute_to_vault(value, row["user_address"])
        return row

    async def execute_to_vault(self, amount: int, user_address: str) -> str:
        """Wrap any ETH held by the payout contract, then credit the user"""
        eth_balance = await self.chain.get_balance(self.payout_address)
        if eth_balance > 0:
            logger.info(f"🔄 Wrapping {eth_balance} wei held by payout contract")
            wrap_hash = await self.sender.send_transaction({
                "to": self.payout_address,
                "data": encode_function_call(VAULT_MAIN_ABI, "wrapEthToWeth", []),
                "value": 0,
            })
            ensure_success(await self.chain.wait_for_receipt(wrap_hash), wrap_hash)

        tx_hash = await self.sender.send_transaction({
            "to": self.payout_address,
            "data": encode_function_call(
                VAULT_MAIN_ABI, "executeToVault", [amount, ChainClient.to_checksum(user_address)]
            ),
            "value": 0,
        })
        receipt = ensure_success(await self.chain.wait_for_receipt(tx_hash), tx_hash)
        self.payout_count += 1
        logger.info(f"🏦 executeToVault {amount} for {user_address[:10]}... in block {receipt['blockNumber']}")
        return tx_hash
