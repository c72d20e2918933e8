"""
Withdrawal Service - admin-authorized withdrawals from the vault main contract
Validates the request, checks the operator is the vault admin, checks WETH
liquidity, then simulates, signs and sends requestWithdraw.
"""
import asyncio
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from core.services.chain.abi import ERC20_ABI, VAULT_MAIN_ABI, encode_function_call, to_bytes
from core.services.chain.chain_client import ChainClient, ensure_success, get_katana_chain
from core.services.chain.signer import LocalAccountSender, TransactionSender
from core.services.chain.units import format_units, is_hex_address, parse_base_units
from core.services.errors import (
    InsufficientLiquidityError,
    WithdrawalAuthorizationError,
    WithdrawalError,
    WithdrawalValidationError,
)
from core.services.ledger.withdraw_history import WithdrawHistoryRepository
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

WETH_DECIMALS = 18
MAX_UINT32 = 2 ** 32 - 1


class WithdrawRequest(BaseModel):
    """
    Withdrawal request body
    Fields are loosely typed on purpose: WithdrawalService.validate owns the
    checks so every rejection is a 400 with a stable message.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user: Optional[str] = None
    amount: Optional[Union[int, str]] = None
    destination_network: Optional[Union[int, str]] = Field(None, alias="destinationNetwork")
    destination_address: Optional[str] = Field(None, alias="destinationAddress")
    token: Optional[str] = None
    force_update_global_exit_root: bool = Field(False, alias="forceUpdateGlobalExitRoot")
    permit_data: str = Field("0x", alias="permitData")


class ValidatedWithdrawal(BaseModel):
    user: str
    amount: int
    destination_network: int
    destination_address: str
    token: str
    force_update_global_exit_root: bool
    permit_data: bytes


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class WithdrawalService:
    """
    Withdrawal Service
    - validate: request checks, no chain access
    - process: authorization -> liquidity -> simulate -> send -> confirm -> record
    - get_vault_balance / get_contract_info: read-only views
    """

    def __init__(
        self,
        chain: Optional[ChainClient] = None,
        sender: Optional[TransactionSender] = None,
        ledger: Optional[WithdrawHistoryRepository] = None,
        contract_address: Optional[str] = None,
    ):
        self.chain = chain or get_katana_chain()
        self._sender = sender
        self.ledger = ledger or WithdrawHistoryRepository()
        self.contract_address = contract_address or settings.contracts.vault_contract_address

    @property
    def sender(self) -> TransactionSender:
        """Operator signer, built from OPERATOR_PRIVATE_KEY on first use"""
        if self._sender is None:
            private_key = settings.web3.operator_private_key
            if not private_key:
                raise WithdrawalError(message="OPERATOR_PRIVATE_KEY is not configured")
            self._sender = LocalAccountSender(private_key, self.chain)
        return self._sender

    @staticmethod
    def validate(request: WithdrawRequest) -> ValidatedWithdrawal:
        """
        Check required fields, amount, then destination address format

        Raises:
            WithdrawalValidationError: first failing check
        """
        if any(
            _missing(value)
            for value in (request.amount, request.destination_network, request.destination_address, request.token)
        ):
            raise WithdrawalValidationError(
                "Missing required fields: amount, destinationNetwork, destinationAddress, token"
            )

        try:
            amount = parse_base_units(request.amount)
        except ValueError:
            raise WithdrawalValidationError("Amount must be an integer in base units")
        if amount <= 0:
            raise WithdrawalValidationError("Amount must be greater than 0")

        if not is_hex_address(request.destination_address):
            raise WithdrawalValidationError("Invalid destination address format")

        try:
            destination_network = parse_base_units(request.destination_network)
        except ValueError:
            raise WithdrawalValidationError("Invalid destination network")
        if not 0 <= destination_network <= MAX_UINT32:
            raise WithdrawalValidationError("Invalid destination network")

        if not is_hex_address(request.token):
            raise WithdrawalValidationError("Invalid token address format")

        try:
            permit_data = to_bytes(request.permit_data or "0x")
        except ValueError:
            raise WithdrawalValidationError("Invalid permitData")

        return ValidatedWithdrawal(
            user=request.user or request.destination_address,
            amount=amount,
            destination_network=destination_network,
            destination_address=request.destination_address,
            token=request.token,
            force_update_global_exit_root=request.force_update_global_exit_root,
            permit_data=permit_data,
        )

    async def _read(self, name: str, *args: Any) -> Any:
        return await self.chain.call_function(self.contract_address, VAULT_MAIN_ABI, name, *args)

    async def process(self, request: WithdrawRequest) -> Dict[str, Any]:
        """
        Execute a withdrawal

        Args:
            request: Withdrawal request

        Returns:
            {success, transactionHash, blockNumber, message}

        Raises:
            WithdrawalValidationError: 400, before any chain call
            WithdrawalAuthorizationError: 403, operator is not the admin
            InsufficientLiquidityError: 400, vault WETH below amount
            ChainError: simulation, submission or confirmation failure
        """
        withdrawal = self.validate(request)
        logger.info(
            f"💸 Processing withdrawal: {withdrawal.amount} of {withdrawal.token} "
            f"-> {withdrawal.destination_address} (network {withdrawal.destination_network})"
        )

        sender = self.sender
        admin_address = await self._read("ADMIN_ADDRESS")
        if str(admin_address).lower() != sender.address.lower():
            logger.warning(f"⚠️ Operator {sender.address} is not vault admin {admin_address}")
            raise WithdrawalAuthorizationError()

        vault_address = await self._read("VAULT_ADDRESS")
        weth_address = await self._read("WETH_ADDRESS")
        available = int(await self.chain.call_function(weth_address, ERC20_ABI, "balanceOf", vault_address))
        if available < withdrawal.amount:
            logger.warning(f"⚠️ Insufficient vault balance: requested {withdrawal.amount}, available {available}")
            raise InsufficientLiquidityError(requested=withdrawal.amount, available=available)

        call_data = encode_function_call(
            VAULT_MAIN_ABI,
            "requestWithdraw",
            [
                withdrawal.amount,
                withdrawal.destination_network,
                ChainClient.to_checksum(withdrawal.destination_address),
                ChainClient.to_checksum(withdrawal.token),
                withdrawal.force_update_global_exit_root,
                withdrawal.permit_data,
            ],
        )
        tx = {"to": self.contract_address, "data": call_data, "value": 0}

        # Simulate first so a revert surfaces before anything is signed
        await self.chain.call({"from": sender.address, **tx})

        tx_hash = await sender.send_transaction(tx)
        logger.info(f"📤 Withdrawal transaction hash: {tx_hash}")

        receipt = await self.chain.wait_for_receipt(tx_hash)
        ensure_success(receipt, tx_hash)
        block_number = receipt["blockNumber"]
        logger.info(f"✅ Withdrawal {tx_hash} confirmed in block {block_number}")

        try:
            await self.ledger.insert_withdrawal(
                user_address=withdrawal.user,
                amount=withdrawal.amount,
                token_address=withdrawal.token,
                transaction_hash=tx_hash,
                destination_network=withdrawal.destination_network,
            )
        except Exception as e:
            logger.error(f"❌ Failed to record withdrawal {tx_hash}: {e}")

        return {
            "success": True,
            "transactionHash": tx_hash,
            "blockNumber": str(block_number),
            "message": "Withdrawal request processed successfully",
        }

    async def get_vault_balance(self) -> Dict[str, Any]:
        """WETH held by the vault, in base units and formatted"""
        vault_address, weth_address = await asyncio.gather(
            self._read("VAULT_ADDRESS"),
            self._read("WETH_ADDRESS"),
        )
        balance = int(await self.chain.call_function(weth_address, ERC20_ABI, "balanceOf", vault_address))
        return {
            "contractAddress": self.contract_address,
            "vaultAddress": vault_address,
            "wethAddress": weth_address,
            "balance": str(balance),
            "balanceFormatted": format_units(balance, WETH_DECIMALS),
        }

    async def get_contract_info(self) -> Dict[str, Any]:
        admin_address, bridge_address, vault_address, weth_address = await asyncio.gather(
            self._read("ADMIN_ADDRESS"),
            self._read("BRIDGE_ADDRESS"),
            self._read("VAULT_ADDRESS"),
            self._read("WETH_ADDRESS"),
        )
        return {
            "contractAddress": self.contract_address,
            "adminAddress": admin_address,
            "bridgeAddress": bridge_address,
            "vaultAddress": vault_address,
            "wethAddress": weth_address,
        }


_withdrawal_service: Optional[WithdrawalService] = None


def get_withdrawal_service() -> WithdrawalService:
    """Get or create WithdrawalService instance"""
    global _withdrawal_service
    if _withdrawal_service is None:
        _withdrawal_service = WithdrawalService()
    return _withdrawal_service
