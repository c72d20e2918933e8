"""
Transaction History Repository - bridge deposit ledger
Rows are inserted as pending right after broadcast, patched with the
deposit count after confirmation and completed by the claim reconciler.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.database.connection import get_session_factory
from core.database.models import (
    BRIDGE_STATUSES,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PENDING,
    TransactionHistory,
)
from core.services.errors import InvalidStatusTransition, LedgerError
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10


def apply_pagination(query, limit: Optional[int], offset: Optional[int]):
    """Offset without a limit pages by DEFAULT_PAGE_SIZE"""
    if offset is not None and limit is None:
        limit = DEFAULT_PAGE_SIZE
    if limit is not None:
        query = query.limit(limit)
    if offset is not None:
        query = query.offset(offset)
    return query


class TransactionHistoryRepository:
    """CRUD and aggregate queries over transaction_history"""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def insert_bridge_transaction(
        self,
        user_address: str,
        amount: int,
        token_address: str,
        source_network: int,
        destination_network: int,
        transaction_hash: str,
        deposit_count: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Record a broadcast bridge transaction as pending

        Args:
            user_address: Wallet that sent the bridge transaction
            amount: Amount in base units
            token_address: Bridged token (native sentinel for ETH)
            source_network: Origin network id
            destination_network: Destination network id
            transaction_hash: Bridge transaction hash
            deposit_count: Deposit count, when already known

        Returns:
            Inserted row as dict
        """
        try:
            async with self.session_factory() as session:
                row = TransactionHistory(
                    user_address=user_address,
                    amount=str(int(amount)),
                    token_address=token_address,
                    source_network=source_network,
                    destination_network=destination_network,
                    transaction_hash=transaction_hash,
                    deposit_count=deposit_count,
                    status=STATUS_PENDING,
                )
                session.add(row)
                await session.commit()
                await session.refresh(row)
                logger.info(f"📝 Recorded pending bridge tx {transaction_hash} for {user_address[:10]}...")
                return row.to_dict()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to insert bridge transaction {transaction_hash}: {e}") from e

    async def update_transaction_status(self, transaction_hash: str, status: str) -> Optional[Dict[str, Any]]:
        """
        Mark a pending row failed

        Only pending rows may change; completed and failed are terminal.
        Completion is not reachable here: it goes through
        complete_pending_by_deposit_count once the claim is seen on chain.
        Setting the current status again is a no-op.

        Returns:
            Updated row as dict, or None if the hash is unknown

        Raises:
            ValueError: unknown status
            InvalidStatusTransition: row is already terminal, or the
                requested status is completed
        """
        if status not in BRIDGE_STATUSES:
            raise ValueError(f"Unknown status: {status}")

        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TransactionHistory).where(TransactionHistory.transaction_hash == transaction_hash)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    logger.warning(f"⚠️ No bridge transaction {transaction_hash} to update")
                    return None

                if status == STATUS_COMPLETED:
                    raise InvalidStatusTransition(transaction_hash, row.status, status)
                if row.status == status:
                    return row.to_dict()
                if row.status != STATUS_PENDING:
                    raise InvalidStatusTransition(transaction_hash, row.status, status)

                row.status = status
                await session.commit()
                await session.refresh(row)
                logger.info(f"🔄 Bridge tx {transaction_hash} -> {status}")
                return row.to_dict()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to update status of {transaction_hash}: {e}") from e

    async def set_deposit_count(self, transaction_hash: str, deposit_count: int) -> Optional[Dict[str, Any]]:
        """Attach the deposit count read from BridgeEvent"""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TransactionHistory).where(TransactionHistory.transaction_hash == transaction_hash)
                )
                row = result.scalar_one_or_none()
                if row is None:
                    logger.warning(f"⚠️ No bridge transaction {transaction_hash} for deposit count {deposit_count}")
                    return None

                row.deposit_count = deposit_count
                await session.commit()
                await session.refresh(row)
                return row.to_dict()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to set deposit count on {transaction_hash}: {e}") from e

    async def get_transaction_by_hash(self, transaction_hash: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TransactionHistory).where(TransactionHistory.transaction_hash == transaction_hash)
                )
                row = result.scalar_one_or_none()
                return row.to_dict() if row else None
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read {transaction_hash}: {e}") from e

    async def get_user_transaction_history(
        self,
        user_address: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Bridge transactions of one user, newest first

        Args:
            user_address: Wallet address (case-insensitive)
            limit: Page size
            offset: Rows to skip
            status: Optional status filter

        Returns:
            List of rows as dicts
        """
        query = select(TransactionHistory).where(
            func.lower(TransactionHistory.user_address) == user_address.lower()
        )
        if status:
            query = query.where(TransactionHistory.status == status)
        query = query.order_by(TransactionHistory.created_at.desc(), TransactionHistory.id.desc())
        query = apply_pagination(query, limit, offset)
        return await self._fetch_all(query)

    async def get_all_transactions(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        status: Optional[str] = None,
        source_network: Optional[int] = None,
        destination_network: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """All bridge transactions (admin view), newest first"""
        query = select(TransactionHistory)
        if status:
            query = query.where(TransactionHistory.status == status)
        if source_network is not None:
            query = query.where(TransactionHistory.source_network == source_network)
        if destination_network is not None:
            query = query.where(TransactionHistory.destination_network == destination_network)
        query = query.order_by(TransactionHistory.created_at.desc(), TransactionHistory.id.desc())
        query = apply_pagination(query, limit, offset)
        return await self._fetch_all(query)

    async def get_transaction_stats(self) -> Dict[str, Any]:
        """
        Counts per status and the completed volume

        totalVolume is the exact integer sum of completed amounts, as a string.
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TransactionHistory.status, TransactionHistory.amount)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to compute transaction stats: {e}") from e

        stats: Dict[str, Any] = {
            "total": len(rows),
            STATUS_PENDING: 0,
            STATUS_COMPLETED: 0,
            STATUS_FAILED: 0,
        }
        total_volume = 0
        for status, amount in rows:
            if status in BRIDGE_STATUSES:
                stats[status] += 1
            if status == STATUS_COMPLETED:
                total_volume += int(amount)

        stats["totalVolume"] = str(total_volume)
        return stats

    async def complete_pending_by_deposit_count(self, deposit_count: int) -> Optional[Dict[str, Any]]:
        """
        Flip the single pending row carrying this deposit count to completed

        Deposit counts are only unique per origin network, so more than one
        pending match is ambiguous and nothing is updated.

        Returns:
            Completed row as dict, or None when there was no unique match
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(TransactionHistory).where(
                        TransactionHistory.deposit_count == deposit_count,
                        TransactionHistory.status == STATUS_PENDING,
                    )
                )
                rows = result.scalars().all()

                if not rows:
                    logger.info(f"ℹ️ No pending bridge transaction with deposit count {deposit_count}")
                    return None
                if len(rows) > 1:
                    hashes = ", ".join(row.transaction_hash for row in rows)
                    logger.warning(
                        f"⚠️ {len(rows)} pending rows share deposit count {deposit_count} ({hashes}), skipping"
                    )
                    return None

                row = rows[0]
                row.status = STATUS_COMPLETED
                await session.commit()
                await session.refresh(row)
                logger.info(f"✅ Bridge tx {row.transaction_hash} completed (deposit count {deposit_count})")
                return row.to_dict()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to complete deposit count {deposit_count}: {e}") from e

    async def _fetch_all(self, query) -> List[Dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [row.to_dict() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read transaction history: {e}") from e
