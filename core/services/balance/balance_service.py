"""
Balance Service - wallet and vault balances
Reads native, ERC-20 and vault-position balances and formats them for display.
A failed read never raises: the result carries the error instead.
"""
import asyncio
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Optional

from core.services.chain.abi import ERC20_ABI, VAULT_MAIN_ABI
from core.services.chain.chain_client import ChainClient, get_katana_chain, get_source_chain
from core.services.chain.units import format_units, is_hex_address
from infrastructure.config.settings import settings
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

NATIVE_DECIMALS = 18
VAULT_SHARE_DECIMALS = 18


@dataclass
class BalanceResult:
    """
    Balance read result
    value is in base units; formatted is exact, numeric is display-only
    """
    value: Optional[int] = None
    decimals: Optional[int] = None
    formatted: Optional[str] = None
    numeric: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def from_value(cls, value: int, decimals: int) -> "BalanceResult":
        formatted = format_units(value, decimals)
        return cls(value=value, decimals=decimals, formatted=formatted, numeric=float(formatted))

    @classmethod
    def failed(cls, error: Any) -> "BalanceResult":
        return cls(error=str(error))

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # Base units as string so JSON clients keep full precision
        if data["value"] is not None:
            data["value"] = str(data["value"])
        return data


class BalanceService:
    """
    Balance Service
    - Native balance (18 decimals)
    - ERC-20 balance (decimals read from the token)
    - Vault position via checkBalance on Katana (18 decimals)
    """

    def __init__(
        self,
        chain: Optional[ChainClient] = None,
        vault_address: Optional[str] = None,
        vault_chain: Optional[ChainClient] = None,
    ):
        self.chain = chain or get_source_chain()
        # The vault lives on Katana; wallet balances are read on the source chain
        self.vault_chain = vault_chain or get_katana_chain()
        self.vault_address = (
            vault_address
            or settings.contracts.destination_vault_address
            or settings.contracts.vault_contract_address
        )

    async def get_native_balance(self, wallet_address: str) -> BalanceResult:
        """
        Get native ETH balance

        Args:
            wallet_address: Wallet address

        Returns:
            BalanceResult (error set on failure)
        """
        try:
            if not is_hex_address(wallet_address):
                raise ValueError(f"Invalid address: {wallet_address}")
            value = await self.chain.get_balance(wallet_address)
            result = BalanceResult.from_value(int(value), NATIVE_DECIMALS)
            logger.debug(f"🪙 ETH balance for {wallet_address[:10]}...: {result.formatted}")
            return result
        except Exception as e:
            logger.error(f"❌ Error checking ETH balance for {wallet_address}: {e}")
            return BalanceResult.failed(e)

    async def get_token_balance(self, token_address: str, wallet_address: str) -> BalanceResult:
        """
        Get ERC-20 balance; decimals and balanceOf are read concurrently

        Args:
            token_address: ERC-20 token address
            wallet_address: Wallet address

        Returns:
            BalanceResult (error set on failure)
        """
        try:
            for address in (token_address, wallet_address):
                if not is_hex_address(address):
                    raise ValueError(f"Invalid address: {address}")

            decimals, value = await asyncio.gather(
                self.chain.call_function(token_address, ERC20_ABI, "decimals"),
                self.chain.call_function(
                    token_address, ERC20_ABI, "balanceOf", ChainClient.to_checksum(wallet_address)
                ),
            )
            result = BalanceResult.from_value(int(value), int(decimals))
            logger.debug(f"💵 {token_address[:10]}... balance for {wallet_address[:10]}...: {result.formatted}")
            return result
        except Exception as e:
            logger.error(f"❌ Error checking {token_address} balance for {wallet_address}: {e}")
            return BalanceResult.failed(e)

    async def get_vault_position(self, wallet_address: str) -> BalanceResult:
        """Get the user's position in the Katana destination vault"""
        try:
            if not is_hex_address(wallet_address):
                raise ValueError(f"Invalid address: {wallet_address}")
            value = await self.vault_chain.call_function(
                self.vault_address, VAULT_MAIN_ABI, "checkBalance", ChainClient.to_checksum(wallet_address)
            )
            return BalanceResult.from_value(int(value), VAULT_SHARE_DECIMALS)
        except Exception as e:
            logger.error(f"❌ Error checking vault position for {wallet_address}: {e}")
            return BalanceResult.failed(e)

    async def get_balances(
        self,
        wallet_address: str,
        tokens: Optional[Iterable[str]] = None,
    ) -> Dict[str, BalanceResult]:
        """
        Get native and token balances for a wallet

        Args:
            wallet_address: Wallet address
            tokens: Token addresses (defaults to configured WETH/USDC)

        Returns:
            Dict keyed by "native" and token address
        """
        if tokens is None:
            tokens = [t for t in (settings.contracts.weth_address, settings.contracts.usdc_address) if t]
        tokens = list(tokens)

        results = await asyncio.gather(
            self.get_native_balance(wallet_address),
            *(self.get_token_balance(token, wallet_address) for token in tokens),
        )

        balances = {"native": results[0]}
        for token, result in zip(tokens, results[1:]):
            balances[token] = result
        return balances


_balance_service: Optional[BalanceService] = None


def get_balance_service() -> BalanceService:
    """Get or create BalanceService instance"""
    global _balance_service
    if _balance_service is None:
        _balance_service = BalanceService()
    return _balance_service
