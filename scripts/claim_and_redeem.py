#!/usr/bin/env python3
"""
Operator claim - claimAndRedeem a bridged deposit on the bank contract
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.services.claim.claim_service import ClaimService
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)


async def run_claim(args: argparse.Namespace) -> bool:
    service = ClaimService()
    try:
        result = await service.claim_and_redeem(
            deposit_count=args.deposit_count,
            network_id=args.network_id,
            amount=int(args.amount),
            receiver=args.receiver,
            metadata=args.metadata,
            destination_address=args.destination,
            mainnet_exit_root=args.mainnet_exit_root,
            rollup_exit_root=args.rollup_exit_root,
        )
    except Exception as e:
        logger.error(f"❌ claimAndRedeem failed: {e}")
        return False
    finally:
        await service.close()

    print(f"✅ Claimed: {result['transactionHash']} (block {result['blockNumber']}, global index {result['globalIndex']})")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Claim and redeem a bridged deposit")
    parser.add_argument("--deposit-count", type=int, required=True, help="Deposit count of the bridge deposit")
    parser.add_argument(
        "--network-id",
        type=int,
        default=settings.networks.destination_network_id,
        help="Network id passed to the proof API (default: %(default)s)",
    )
    parser.add_argument("--amount", required=True, help="Amount in base units")
    parser.add_argument("--receiver", required=True, help="Receiver of the redeemed assets")
    parser.add_argument("--destination", help="Destination address (default: operator address)")
    parser.add_argument("--metadata", default="0x", help="ABI-encoded token metadata (hex)")
    parser.add_argument("--mainnet-exit-root", help="Override the mainnet exit root from the proof")
    parser.add_argument("--rollup-exit-root", help="Override the rollup exit root from the proof")

    args = parser.parse_args()
    setup_logging(__name__)

    success = asyncio.run(run_claim(args))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
