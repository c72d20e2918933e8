"""
Vault Bridge Application Settings
Centralized configuration management using Pydantic
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env files before the settings classes read the environment
if not os.getenv('DEPLOY_ENVIRONMENT'):
    load_dotenv('.env.local')
    load_dotenv('.env', override=False)


class DatabaseSettings(BaseSettings):
    """Ledger database configuration"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field("sqlite+aiosqlite:///./vault_bridge.db", validation_alias="DATABASE_URL")
    test_url: Optional[str] = Field(None, validation_alias="DATABASE_TEST_URL")

    @property
    def effective_url(self) -> str:
        """Return test_url if available, otherwise url, with an async driver"""
        base_url = (self.test_url or self.url or "").strip().replace('\n', '').replace('\r', '')
        if not base_url or base_url.startswith("sqlite"):
            return base_url

        # Hosted Postgres (Supabase) URLs come as postgres:// or postgresql://
        if base_url.startswith("postgres://"):
            return base_url.replace("postgres://", "postgresql+psycopg://", 1)
        if base_url.startswith("postgresql+asyncpg://"):
            return base_url.replace("postgresql+asyncpg://", "postgresql+psycopg://", 1)
        if base_url.startswith("postgresql://"):
            return base_url.replace("postgresql://", "postgresql+psycopg://", 1)
        return base_url


class Web3Settings(BaseSettings):
    """RPC endpoints, operator key and confirmation policy"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    source_rpc_url: str = Field("https://ethereum-sepolia-rpc.publicnode.com", validation_alias="SOURCE_RPC_URL")
    katana_rpc_url: str = Field("https://rpc.tatara.katanarpc.com/", validation_alias="KATANA_RPC_URL")
    operator_private_key: Optional[str] = Field(None, validation_alias="OPERATOR_PRIVATE_KEY")

    confirmation_timeout: float = Field(180.0, validation_alias="TX_CONFIRMATION_TIMEOUT")
    confirmation_poll_interval: float = Field(1.0, validation_alias="TX_POLL_INTERVAL")
    confirmation_max_poll_interval: float = Field(15.0, validation_alias="TX_MAX_POLL_INTERVAL")

    @field_validator("operator_private_key")
    @classmethod
    def normalize_private_key(cls, v):
        """Accept keys with or without the 0x prefix"""
        if not v:
            return None
        v = v.strip()
        return v if v.startswith("0x") else f"0x{v}"


class ContractSettings(BaseSettings):
    """Contract addresses on the source (Sepolia) and destination (Katana) chains"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # Katana
    vault_contract_address: str = Field(
        "0x5d7F21089decc3145C603eC3cdC4D6330dE89DF2", validation_alias="VAULT_CONTRACT_ADDRESS"
    )
    claim_token_address: str = Field(
        "0x17B8Ee96E3bcB3b04b3e8334de4524520C51caB4", validation_alias="CLAIM_TOKEN_ADDRESS"
    )
    claim_recipient_address: str = Field(
        "0x9758163C44D813FEc380798A11CCf4531A3Fa3D3", validation_alias="CLAIM_RECIPIENT_ADDRESS"
    )
    payout_contract_address: str = Field(
        "0x9758163C44D813FEc380798A11CCf4531A3Fa3D3", validation_alias="PAYOUT_CONTRACT_ADDRESS"
    )
    bank_contract_address: Optional[str] = Field(None, validation_alias="BANK_CONTRACT_ADDRESS")
    reconciler_start_block: int = Field(15132989, validation_alias="RECONCILER_START_BLOCK")

    # Sepolia
    bridge_address: str = Field(
        "0x528e26b25a34a4A5d0dbDa1d57D318153d2ED582", validation_alias="BRIDGE_ADDRESS"
    )
    vault_bridge_address: Optional[str] = Field(None, validation_alias="VAULT_BRIDGE_ADDRESS")
    destination_vault_address: Optional[str] = Field(None, validation_alias="NAILONG_VAULT_ADDRESS")
    native_token_address: str = Field(
        "0x0000000000000000000000000000000000000000", validation_alias="ETH_SEPOLIA_ADDRESS"
    )
    weth_address: Optional[str] = Field(None, validation_alias="WETH_SEPOLIA_ADDRESS")
    usdc_address: Optional[str] = Field(None, validation_alias="USDC_SEPOLIA_ADDRESS")


class NetworkSettings(BaseSettings):
    """LxLy network identifiers"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    source_network_id: int = Field(0, validation_alias="SOURCE_NETWORK_ID")
    destination_network_id: int = Field(29, validation_alias="DESTINATION_NETWORK_ID")


class PriceFeedSettings(BaseSettings):
    """Public price feed for the native asset"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field(
        "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd",
        validation_alias="PRICE_FEED_URL",
    )
    refresh_interval: int = Field(300, validation_alias="PRICE_REFRESH_INTERVAL")  # 5 minutes
    timeout: float = 10.0


class BridgeProofSettings(BaseSettings):
    """Remote merkle-proof service used by the operator claim"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    api_url: str = Field(
        "https://rpc-bridge-tatara-s4atxtv7sq.t.conduit.xyz", validation_alias="BRIDGE_PROOF_API_URL"
    )
    timeout: float = 30.0


class ReconcilerSettings(BaseSettings):
    """Claim reconciliation worker"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    enabled: bool = Field(True, validation_alias="RECONCILER_ENABLED")
    interval_seconds: int = Field(600, validation_alias="RECONCILER_INTERVAL_SECONDS")  # every 10 minutes


class LoggingSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    level: str = Field("INFO", validation_alias="LOG_LEVEL")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dedup_window_seconds: float = Field(60, validation_alias="LOG_DEDUP_WINDOW_SECONDS")
    dedup_max_repeats: int = Field(3, validation_alias="LOG_DEDUP_MAX_REPEATS")


class AppSettings(BaseSettings):
    """Main application settings"""

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    debug: bool = Field(False, validation_alias="DEBUG")
    testing: bool = Field(False, validation_alias="TESTING")
    environment: str = Field("development", validation_alias="ENVIRONMENT")

    # Application
    name: str = "Vault Bridge API"
    version: str = "0.1.0"
    api_prefix: str = "/api"
    port: int = Field(3001, validation_alias="PORT")

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    web3: Web3Settings = Field(default_factory=Web3Settings)
    contracts: ContractSettings = Field(default_factory=ContractSettings)
    networks: NetworkSettings = Field(default_factory=NetworkSettings)
    price_feed: PriceFeedSettings = Field(default_factory=PriceFeedSettings)
    bridge_proof: BridgeProofSettings = Field(default_factory=BridgeProofSettings)
    reconciler: ReconcilerSettings = Field(default_factory=ReconcilerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment.lower() in ["development", "dev", "local"]

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.testing or self.environment.lower() == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment.lower() == "production"


# Global settings instance
settings = AppSettings()
