"""
Tests for ClaimReconciler
"""
import pytest

from core.services.chain.abi import (
    TRANSFER_EVENT_TOPIC,
    VAULT_MAIN_ABI,
    address_topic,
    decode_function_input,
    encode_function_call,
    function_selector,
)
from data_ingestion.indexer.claim_reconciler import ClaimReconciler, deposit_count_from_global_index
from tests.fixtures.mocks import (
    NATIVE_TOKEN,
    USER_ADDRESS,
    claim_asset_input,
    make_chain,
    make_receipt,
    make_sender,
    transfer_log,
    tx_hash,
)

CLAIM_TOKEN = "0x1010101010101010101010101010101010101010"
RECIPIENT = "0x2020202020202020202020202020202020202020"
PAYOUT = "0x3030303030303030303030303030303030303030"
ONE_ETHER = 10 ** 18


def global_index(deposit_count, network=29):
    return ((network - 1) << 32) | deposit_count


def wire(chain, claims):
    """Serve claimAsset transactions keyed by transaction hash"""
    async def _get_transaction(transaction_hash):
        return {"input": claims[transaction_hash]}
    chain.get_transaction.side_effect = _get_transaction


@pytest.fixture
def chain():
    chain = make_chain(make_receipt(block_number=500))
    chain.block_number.return_value = 200
    return chain


@pytest.fixture
def sender():
    return make_sender()


@pytest.fixture
def reconciler(chain, transaction_repo, sender):
    reconciler = ClaimReconciler(chain=chain, ledger=transaction_repo, sender=sender, poll_interval=1, start_block=100)
    reconciler.token_address = CLAIM_TOKEN
    reconciler.recipient_address = RECIPIENT
    reconciler.payout_address = PAYOUT
    return reconciler


async def add_pending(repo, n, deposit_count, user=USER_ADDRESS):
    await repo.insert_bridge_transaction(
        user_address=user,
        amount=ONE_ETHER,
        token_address=NATIVE_TOKEN,
        source_network=0,
        destination_network=29,
        transaction_hash=tx_hash(n),
        deposit_count=deposit_count,
    )


def test_deposit_count_is_low_32_bits():
    assert deposit_count_from_global_index(120259084341) == 53
    assert deposit_count_from_global_index((1 << 64) | 7) == 7


async def test_log_filter(reconciler, chain):
    await reconciler.poll_cycle()

    params = chain.get_logs.await_args.args[0]
    assert params["address"] == CLAIM_TOKEN
    assert params["topics"] == [TRANSFER_EVENT_TOPIC, address_topic(NATIVE_TOKEN), address_topic(RECIPIENT)]
    assert params["fromBlock"] == 100
    assert params["toBlock"] == 200
    assert reconciler.cursor == 201


async def test_no_new_blocks(reconciler, chain):
    chain.block_number.return_value = 99

    await reconciler.poll_cycle()

    chain.get_logs.assert_not_called()
    assert reconciler.cursor == 100


async def test_claim_completes_row_and_pays_out(reconciler, chain, sender, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=53)
    claim_hash = tx_hash(100)
    chain.get_logs.return_value = [transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)]
    wire(chain, {claim_hash: claim_asset_input(global_index(53), ONE_ETHER)})

    await reconciler.poll_cycle()

    row = await transaction_repo.get_transaction_by_hash(tx_hash(1))
    assert row["status"] == "completed"
    assert reconciler.completed_count == 1
    assert reconciler.payout_count == 1

    tx = sender.send_transaction.await_args.args[0]
    assert tx["to"] == PAYOUT
    args = decode_function_input(VAULT_MAIN_ABI, "executeToVault", tx["data"])
    assert args["amount"] == ONE_ETHER
    assert args["user"].lower() == USER_ADDRESS.lower()


async def test_wraps_eth_before_payout(reconciler, chain, sender, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=53)
    claim_hash = tx_hash(100)
    chain.get_balance.return_value = ONE_ETHER
    chain.get_logs.return_value = [transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)]
    wire(chain, {claim_hash: claim_asset_input(global_index(53), ONE_ETHER)})

    await reconciler.poll_cycle()

    selectors = [c.args[0]["data"][:10] for c in sender.send_transaction.await_args_list]
    assert selectors == [
        function_selector(VAULT_MAIN_ABI, "wrapEthToWeth"),
        function_selector(VAULT_MAIN_ABI, "executeToVault"),
    ]


async def test_unmatched_claim_is_skipped(reconciler, chain, sender, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=54)
    claim_hash = tx_hash(100)
    chain.get_logs.return_value = [transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)]
    wire(chain, {claim_hash: claim_asset_input(global_index(53), ONE_ETHER)})

    await reconciler.poll_cycle()

    assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["status"] == "pending"
    sender.send_transaction.assert_not_called()
    assert reconciler.cursor == 201


async def test_reprocessing_a_log_does_not_pay_twice(reconciler, chain, sender, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=53)
    claim_hash = tx_hash(100)
    log = transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)
    wire(chain, {claim_hash: claim_asset_input(global_index(53), ONE_ETHER)})

    assert await reconciler.process_log(log) is not None
    assert await reconciler.process_log(log) is None

    assert sender.send_transaction.await_count == 1


async def test_failed_log_rewinds_cursor(reconciler, chain, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=53)
    await add_pending(transaction_repo, 2, deposit_count=54)
    good, bad = tx_hash(100), tx_hash(101)
    chain.get_logs.return_value = [
        transfer_log(ONE_ETHER, RECIPIENT, 120, good),
        transfer_log(ONE_ETHER, RECIPIENT, 180, bad),
    ]

    async def _get_transaction(transaction_hash):
        if transaction_hash == bad:
            raise ConnectionError("rpc timeout")
        return {"input": claim_asset_input(global_index(53), ONE_ETHER)}

    chain.get_transaction.side_effect = _get_transaction

    await reconciler.poll_cycle()

    assert reconciler.cursor == 180
    assert reconciler.error_count == 1
    assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["status"] == "completed"
    assert (await transaction_repo.get_transaction_by_hash(tx_hash(2)))["status"] == "pending"


async def test_stats(reconciler):
    await reconciler.poll_cycle()

    stats = reconciler.get_stats()
    assert stats["poll_count"] == 1
    assert stats["cursor"] == 201
    assert stats["last_poll_time"] is not None


async def test_undecodable_claim_does_not_hold_cursor(reconciler, chain, sender, transaction_repo):
    await add_pending(transaction_repo, 1, deposit_count=53)
    claim_hash = tx_hash(100)
    chain.get_logs.return_value = [transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)]
    # a mint from some other call than claimAsset
    wire(chain, {claim_hash: encode_function_call(VAULT_MAIN_ABI, "executeToVault", [ONE_ETHER, USER_ADDRESS])})

    await reconciler.poll_cycle()
    assert reconciler.cursor == 201

    chain.get_logs.return_value = []
    chain.block_number.return_value = 10_000
    await reconciler.poll_cycle()

    assert [c.args[0]["fromBlock"] for c in chain.get_logs.await_args_list] == [100, 201]
    assert reconciler.cursor == 10_001
    assert reconciler.skipped_count == 1
    assert reconciler.error_count == 0
    assert reconciler.get_stats()["skipped_count"] == 1
    assert (await transaction_repo.get_transaction_by_hash(tx_hash(1)))["status"] == "pending"
    sender.send_transaction.assert_not_called()


async def test_malformed_transfer_data_is_skipped(reconciler, chain):
    claim_hash = tx_hash(100)
    log = transfer_log(ONE_ETHER, RECIPIENT, 150, claim_hash)
    log["data"] = "0x"
    chain.get_logs.return_value = [log]
    wire(chain, {claim_hash: claim_asset_input(global_index(53), ONE_ETHER)})

    await reconciler.poll_cycle()

    assert reconciler.cursor == 201
    assert reconciler.skipped_count == 1
