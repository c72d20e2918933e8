"""
Claim Service - operator claimAndRedeem on the bank contract
Fetches merkle proofs for a deposit from the bridge proof API and submits
the claim with the operator key.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from core.services.chain.abi import BANK_ABI, encode_function_call, to_bytes
from core.services.chain.chain_client import ChainClient, ensure_success, get_katana_chain
from core.services.chain.signer import LocalAccountSender, TransactionSender
from core.services.errors import MerkleProofError
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

PROOF_DEPTH = 32
MAINNET_FLAG = 1 << 64


def compute_global_index(deposit_count: int, origin_network: int) -> int:
    """
    Global index of a deposit

    Mainnet deposits (network 0) set the mainnet flag bit; rollup deposits
    carry the rollup index (network - 1) in bits 32..63.
    """
    if origin_network == 0:
        return MAINNET_FLAG | deposit_count
    return ((origin_network - 1) << 32) | deposit_count


@dataclass
class MerkleProof:
    merkle_proof: List[bytes]
    rollup_merkle_proof: List[bytes]
    main_exit_root: Optional[bytes] = None
    rollup_exit_root: Optional[bytes] = None


def _parse_proof_list(values: Any, name: str) -> List[bytes]:
    if not isinstance(values, list) or len(values) != PROOF_DEPTH:
        raise MerkleProofError(f"{name} must contain {PROOF_DEPTH} entries")
    try:
        return [to_bytes(value).rjust(32, b"\x00") for value in values]
    except (TypeError, ValueError, AttributeError) as e:
        raise MerkleProofError(f"{name} contains a non-hex entry: {e}") from e


def _parse_root(value: Any) -> Optional[bytes]:
    if not value:
        return None
    try:
        return to_bytes(value)
    except (TypeError, ValueError, AttributeError) as e:
        raise MerkleProofError(f"Invalid exit root {value!r}") from e


class ClaimService:
    """
    Claim Service
    - fetch_merkle_proof: GET {proof_api}/merkle-proof
    - claim_and_redeem: sign and send claimAndRedeem, wait for the receipt
    """

    def __init__(
        self,
        chain: Optional[ChainClient] = None,
        sender: Optional[TransactionSender] = None,
        bank_address: Optional[str] = None,
        proof_api_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.chain = chain or get_katana_chain()
        self._sender = sender
        self.bank_address = bank_address or settings.contracts.bank_contract_address
        self.proof_api_url = (proof_api_url or settings.bridge_proof.api_url).rstrip("/")
        self._http_client = http_client

    @property
    def sender(self) -> TransactionSender:
        if self._sender is None:
            if not settings.web3.operator_private_key:
                raise ValueError("OPERATOR_PRIVATE_KEY is not configured")
            self._sender = LocalAccountSender(settings.web3.operator_private_key, self.chain)
        return self._sender

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.bridge_proof.timeout)
        return self._http_client

    async def fetch_merkle_proof(self, deposit_count: int, network_id: int) -> MerkleProof:
        """
        Fetch the merkle proofs of a deposit

        Args:
            deposit_count: Deposit count from the BridgeEvent
            network_id: Network the deposit was made on

        Raises:
            MerkleProofError: request failed or the payload lacks proofs
        """
        url = f"{self.proof_api_url}/merkle-proof"
        params = {"deposit_cnt": deposit_count, "net_id": network_id}
        try:
            response = await self.http_client.get(url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise MerkleProofError(f"Proof API returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise MerkleProofError(f"Proof API request failed: {e}") from e

        proof = data.get("proof") if isinstance(data, dict) else None
        if not isinstance(proof, dict):
            raise MerkleProofError(f"No proof for deposit {deposit_count} on network {network_id}")

        logger.info(f"🌳 Fetched merkle proof for deposit {deposit_count} (network {network_id})")
        return MerkleProof(
            merkle_proof=_parse_proof_list(proof.get("merkle_proof"), "merkle_proof"),
            rollup_merkle_proof=_parse_proof_list(proof.get("rollup_merkle_proof"), "rollup_merkle_proof"),
            main_exit_root=_parse_root(proof.get("main_exit_root")),
            rollup_exit_root=_parse_root(proof.get("rollup_exit_root")),
        )

    async def claim_and_redeem(
        self,
        deposit_count: int,
        network_id: int,
        amount: int,
        receiver: str,
        metadata: Union[str, bytes] = b"",
        destination_address: Optional[str] = None,
        mainnet_exit_root: Optional[Union[str, bytes]] = None,
        rollup_exit_root: Optional[Union[str, bytes]] = None,
    ) -> Dict[str, Any]:
        """
        Claim a bridged deposit and redeem it through the bank contract

        Exit roots default to the ones returned with the proof.

        Returns:
            {transactionHash, blockNumber, globalIndex}
        """
        if not self.bank_address:
            raise ValueError("BANK_CONTRACT_ADDRESS is not configured")

        proof = await self.fetch_merkle_proof(deposit_count, network_id)
        mainnet_root = to_bytes(mainnet_exit_root) if mainnet_exit_root else proof.main_exit_root
        rollup_root = to_bytes(rollup_exit_root) if rollup_exit_root else proof.rollup_exit_root
        if mainnet_root is None or rollup_root is None:
            raise MerkleProofError("Exit roots missing from proof payload; pass them explicitly")

        sender = self.sender
        global_index = compute_global_index(deposit_count, network_id)
        call_data = encode_function_call(
            BANK_ABI,
            "claimAndRedeem",
            [
                proof.merkle_proof,
                proof.rollup_merkle_proof,
                global_index,
                mainnet_root,
                rollup_root,
                ChainClient.to_checksum(destination_address or sender.address),
                amount,
                ChainClient.to_checksum(receiver),
                to_bytes(metadata),
            ],
        )

        tx_hash = await sender.send_transaction({"to": self.bank_address, "data": call_data, "value": 0})
        logger.info(f"🏦 claimAndRedeem sent: {tx_hash} (global index {global_index})")

        receipt = await self.chain.wait_for_receipt(tx_hash)
        ensure_success(receipt, tx_hash)
        return {
            "transactionHash": tx_hash,
            "blockNumber": receipt["blockNumber"],
            "globalIndex": global_index,
        }

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
