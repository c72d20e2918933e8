"""
Tests for the transaction and withdraw history repositories
"""
import pytest

from core.services.errors import InvalidStatusTransition
from tests.fixtures.mocks import NATIVE_TOKEN, TOKEN_ADDRESS, USER_ADDRESS, tx_hash

OTHER_USER = "0x9999999999999999999999999999999999999999"
MIXED_CASE_USER = "0xAbCdEf0000000000000000000000000000000001"


async def insert(repo, n, user=USER_ADDRESS, amount=10 ** 18, deposit_count=None, source=0, destination=29):
    return await repo.insert_bridge_transaction(
        user_address=user,
        amount=amount,
        token_address=NATIVE_TOKEN,
        source_network=source,
        destination_network=destination,
        transaction_hash=tx_hash(n),
        deposit_count=deposit_count,
    )


class TestInsert:

    async def test_inserted_rows_are_pending(self, transaction_repo):
        row = await insert(transaction_repo, 1, amount=123456789123456789123456789)

        assert row["status"] == "pending"
        assert row["amount"] == "123456789123456789123456789"
        assert row["deposit_count"] is None
        assert row["created_at"]

    async def test_lookup_by_hash(self, transaction_repo):
        await insert(transaction_repo, 1)

        assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["transaction_hash"] == tx_hash(1)
        assert await transaction_repo.get_transaction_by_hash(tx_hash(2)) is None


class TestUserHistory:

    async def test_newest_first_and_case_insensitive(self, transaction_repo):
        for n in range(1, 4):
            await insert(transaction_repo, n, user=MIXED_CASE_USER)
        await insert(transaction_repo, 4, user=OTHER_USER)

        rows = await transaction_repo.get_user_transaction_history(MIXED_CASE_USER.lower())

        assert [row["transaction_hash"] for row in rows] == [tx_hash(3), tx_hash(2), tx_hash(1)]

    async def test_status_filter(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=1)
        await insert(transaction_repo, 2, deposit_count=2)
        await transaction_repo.complete_pending_by_deposit_count(1)

        rows = await transaction_repo.get_user_transaction_history(USER_ADDRESS, status="completed")

        assert [row["transaction_hash"] for row in rows] == [tx_hash(1)]

    async def test_offset_without_limit_uses_page_size(self, transaction_repo):
        for n in range(1, 16):
            await insert(transaction_repo, n)

        rows = await transaction_repo.get_user_transaction_history(USER_ADDRESS, offset=2)

        assert len(rows) == 10
        assert rows[0]["transaction_hash"] == tx_hash(13)

    async def test_limit_and_offset(self, transaction_repo):
        for n in range(1, 6):
            await insert(transaction_repo, n)

        rows = await transaction_repo.get_user_transaction_history(USER_ADDRESS, limit=2, offset=1)

        assert [row["transaction_hash"] for row in rows] == [tx_hash(4), tx_hash(3)]


class TestAllTransactions:

    async def test_network_filters(self, transaction_repo):
        await insert(transaction_repo, 1, source=0, destination=29)
        await insert(transaction_repo, 2, source=29, destination=0)

        rows = await transaction_repo.get_all_transactions(source_network=29)
        assert [row["transaction_hash"] for row in rows] == [tx_hash(2)]

        rows = await transaction_repo.get_all_transactions(destination_network=29)
        assert [row["transaction_hash"] for row in rows] == [tx_hash(1)]

    async def test_all_users_returned(self, transaction_repo):
        await insert(transaction_repo, 1)
        await insert(transaction_repo, 2, user=OTHER_USER)

        assert len(await transaction_repo.get_all_transactions()) == 2


class TestStats:

    async def test_empty_ledger(self, transaction_repo):
        assert await transaction_repo.get_transaction_stats() == {
            "total": 0,
            "pending": 0,
            "completed": 0,
            "failed": 0,
            "totalVolume": "0",
        }

    async def test_volume_counts_completed_only_and_exactly(self, transaction_repo):
        big = 2 ** 200
        await insert(transaction_repo, 1, amount=big, deposit_count=1)
        await insert(transaction_repo, 2, amount=big + 1, deposit_count=2)
        await insert(transaction_repo, 3, amount=5)
        await insert(transaction_repo, 4, amount=7)
        await transaction_repo.complete_pending_by_deposit_count(1)
        await transaction_repo.complete_pending_by_deposit_count(2)
        await transaction_repo.update_transaction_status(tx_hash(3), "failed")

        stats = await transaction_repo.get_transaction_stats()

        assert stats == {
            "total": 4,
            "pending": 1,
            "completed": 2,
            "failed": 1,
            "totalVolume": str(2 * big + 1),
        }
        # reading stats does not change them
        assert await transaction_repo.get_transaction_stats() == stats


class TestStatusTransitions:

    async def test_pending_to_failed(self, transaction_repo):
        await insert(transaction_repo, 1)

        row = await transaction_repo.update_transaction_status(tx_hash(1), "failed")

        assert row["status"] == "failed"

    async def test_completion_is_refused(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=53)

        with pytest.raises(InvalidStatusTransition) as exc_info:
            await transaction_repo.update_transaction_status(tx_hash(1), "completed")

        assert exc_info.value.current == "pending"
        assert exc_info.value.requested == "completed"
        assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["status"] == "pending"
        # the claim path still completes it
        assert (await transaction_repo.complete_pending_by_deposit_count(53))["status"] == "completed"

    async def test_same_status_is_noop(self, transaction_repo):
        await insert(transaction_repo, 1)
        await transaction_repo.update_transaction_status(tx_hash(1), "failed")

        row = await transaction_repo.update_transaction_status(tx_hash(1), "failed")

        assert row["status"] == "failed"

    async def test_terminal_rows_do_not_move(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=53)
        await transaction_repo.complete_pending_by_deposit_count(53)

        for status in ("pending", "failed", "completed"):
            with pytest.raises(InvalidStatusTransition):
                await transaction_repo.update_transaction_status(tx_hash(1), status)

        assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["status"] == "completed"

    async def test_unknown_status_rejected(self, transaction_repo):
        await insert(transaction_repo, 1)

        with pytest.raises(ValueError):
            await transaction_repo.update_transaction_status(tx_hash(1), "done")

    async def test_unknown_hash_returns_none(self, transaction_repo):
        assert await transaction_repo.update_transaction_status(tx_hash(42), "failed") is None


class TestCompleteByDepositCount:

    async def test_completes_unique_pending_match(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=53)
        await insert(transaction_repo, 2, deposit_count=54)

        row = await transaction_repo.complete_pending_by_deposit_count(53)

        assert row["transaction_hash"] == tx_hash(1)
        assert row["status"] == "completed"
        assert (await transaction_repo.get_transaction_by_hash(tx_hash(2)))["status"] == "pending"

    async def test_second_call_finds_nothing(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=53)
        await transaction_repo.complete_pending_by_deposit_count(53)

        assert await transaction_repo.complete_pending_by_deposit_count(53) is None

    async def test_ambiguous_match_updates_nothing(self, transaction_repo):
        await insert(transaction_repo, 1, deposit_count=53, source=0)
        await insert(transaction_repo, 2, deposit_count=53, source=29)

        assert await transaction_repo.complete_pending_by_deposit_count(53) is None

        stats = await transaction_repo.get_transaction_stats()
        assert stats["pending"] == 2

    async def test_set_deposit_count(self, transaction_repo):
        await insert(transaction_repo, 1)

        await transaction_repo.set_deposit_count(tx_hash(1), 99)

        assert (await transaction_repo.complete_pending_by_deposit_count(99))["transaction_hash"] == tx_hash(1)


class TestWithdrawHistory:

    async def test_user_history_newest_first(self, withdraw_repo):
        for n in range(1, 4):
            await withdraw_repo.insert_withdrawal(
                user_address=USER_ADDRESS,
                amount=n * 10 ** 18,
                token_address=TOKEN_ADDRESS,
                transaction_hash=tx_hash(n),
                destination_network=0,
            )
        await withdraw_repo.insert_withdrawal(
            user_address=OTHER_USER,
            amount=1,
            token_address=TOKEN_ADDRESS,
            transaction_hash=tx_hash(9),
            destination_network=0,
        )

        rows = await withdraw_repo.get_user_withdraw_history(USER_ADDRESS.lower())

        assert [row["transaction_hash"] for row in rows] == [tx_hash(3), tx_hash(2), tx_hash(1)]
        assert rows[0]["amount"] == str(3 * 10 ** 18)
        assert len(await withdraw_repo.get_all_withdrawals()) == 4
