#!/usr/bin/env python3
"""
Bridge CLI - bridge an asset from the source chain with a local key
Prints the toast stream produced by the bridge run.
"""
import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.database.connection import close_db, init_db
from core.services.bridge.bridge_service import BridgeParams, BridgeService
from core.services.chain.abi import ERC20_ABI
from core.services.chain.chain_client import get_source_chain
from core.services.chain.signer import LocalAccountSender
from core.services.chain.units import parse_units
from core.services.notifications import BridgeToastAdapter, NotificationCenter
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)


def print_notification(event, notification) -> None:
    print(f"[{event.value:>7}] {notification.title}: {notification.message}")


async def run_bridge(args: argparse.Namespace) -> bool:
    private_key = os.getenv(args.key_env)
    if not private_key:
        print(f"❌ {args.key_env} is not set")
        return False

    chain = get_source_chain()
    sender = LocalAccountSender(private_key, chain)
    service = BridgeService(chain=chain)

    if args.amount is not None:
        amount = int(args.amount)
    else:
        if service.is_native(args.token):
            decimals = 18
        else:
            decimals = int(await chain.call_function(args.token, ERC20_ABI, "decimals"))
        amount = parse_units(args.ether, decimals)

    params = BridgeParams(
        token_address=args.token,
        amount=amount,
        destination_network=args.destination_network,
        force_update_global_exit_root=not args.no_force_update,
        destination_address=args.destination,
    )

    center = NotificationCenter()
    center.subscribe(print_notification)
    toasts = BridgeToastAdapter(center)

    print(f"🌉 Bridging {amount} of {args.token} from {sender.address}")
    if os.getenv("SKIP_DB", "false").lower() != "true":
        await init_db()

    try:
        if args.mode == "deposit-gas":
            result = await service.deposit_gas_token_and_bridge(params, sender, on_state_change=toasts)
        else:
            result = await service.bridge_asset(params, sender, on_state_change=toasts)
    except Exception as e:
        logger.error(f"❌ Bridge run failed: {e}")
        return False
    finally:
        await close_db()

    print(f"✅ {result.transaction_hash} (block {result.block_number}, deposit count {result.deposit_count})")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Bridge an asset to Katana")
    parser.add_argument(
        "--token",
        default=settings.contracts.native_token_address,
        help="Token address (default: native ETH sentinel)",
    )
    amount_group = parser.add_mutually_exclusive_group(required=True)
    amount_group.add_argument("--amount", help="Amount in base units")
    amount_group.add_argument("--ether", help="Amount in whole-token units, e.g. 0.01")
    parser.add_argument("--destination", help="Destination address (default: NAILONG_VAULT_ADDRESS)")
    parser.add_argument(
        "--destination-network",
        type=int,
        default=settings.networks.destination_network_id,
        help="Destination network id (default: %(default)s)",
    )
    parser.add_argument(
        "--mode",
        choices=["bridge", "deposit-gas"],
        default="bridge",
        help="bridge: bridgeAsset; deposit-gas: depositGasTokenAndBridge on the vault bridge",
    )
    parser.add_argument("--no-force-update", action="store_true", help="Do not force a global exit root update")
    parser.add_argument(
        "--key-env",
        default="OPERATOR_PRIVATE_KEY",
        help="Environment variable holding the signing key (default: %(default)s)",
    )

    args = parser.parse_args()
    setup_logging(__name__)

    success = asyncio.run(run_bridge(args))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
