"""
Withdraw History Repository - insert-only record of vault withdrawals
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.database.connection import get_session_factory
from core.database.models import WithdrawHistory
from core.services.errors import LedgerError
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)


class WithdrawHistoryRepository:

    def __init__(self, session_factory: Optional[async_sessionmaker] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def insert_withdrawal(
        self,
        user_address: str,
        amount: int,
        token_address: str,
        transaction_hash: str,
        destination_network: int,
    ) -> Dict[str, Any]:
        """Record a confirmed withdrawal"""
        try:
            async with self.session_factory() as session:
                row = WithdrawHistory(
                    user_address=user_address,
                    amount=str(int(amount)),
                    token_address=token_address,
                    transaction_hash=transaction_hash,
                    destination_network=destination_network,
                )
                session.add(row)
                await session.commit()
                await session.refresh(row)
                logger.info(f"📝 Recorded withdrawal {transaction_hash} for {user_address[:10]}...")
                return row.to_dict()
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to insert withdrawal {transaction_hash}: {e}") from e

    async def get_user_withdraw_history(self, user_address: str) -> List[Dict[str, Any]]:
        """Withdrawals of one user (case-insensitive), newest first"""
        query = (
            select(WithdrawHistory)
            .where(func.lower(WithdrawHistory.user_address) == user_address.lower())
            .order_by(WithdrawHistory.created_at.desc(), WithdrawHistory.id.desc())
        )
        return await self._fetch_all(query)

    async def get_all_withdrawals(self) -> List[Dict[str, Any]]:
        query = select(WithdrawHistory).order_by(WithdrawHistory.created_at.desc(), WithdrawHistory.id.desc())
        return await self._fetch_all(query)

    async def _fetch_all(self, query) -> List[Dict[str, Any]]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [row.to_dict() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise LedgerError(f"Failed to read withdraw history: {e}") from e
