"""Application configuration using pydantic-settings.

Settings are loaded once at process start and handed to the chain registry,
the relayer and the wallet service. Nothing else in the package reads the
environment directly.
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_CHAIN_ID = 8453
ETHEREUM_CHAIN_ID = 1
SEPOLIA_CHAIN_ID = 11155111


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Chain RPC Endpoints
    # ======================
    base_rpc_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ALCHEMY_BASE_RPC", "BASE_RPC_URL", "base_rpc_url"),
        description="Primary Base RPC URL (required for balance reads on Base)",
    )
    ethereum_rpc_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ETHEREUM_RPC_URL", "ethereum_rpc_url"),
        description="Ethereum mainnet RPC URL override",
    )
    sepolia_rpc_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SEPOLIA_RPC_URL", "sepolia_rpc_url"),
        description="Sepolia RPC URL override",
    )
    alchemy_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ALCHEMY_API_KEY", "alchemy_api_key"),
        description="Alchemy API key used to build keyed fallback endpoints",
    )
    rpc_timeout: float = Field(default=30.0, description="RPC request timeout in seconds")

    # ======================
    # Relayer
    # ======================
    relayer_private_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "RELAYER_PRIVATE_KEY", "LIT_PRIVATE_KEY", "relayer_private_key"
        ),
        description="Private key of the wallet that submits authorizations and pays gas",
    )
    authorization_validity_seconds: int = Field(
        default=20 * 60, description="Lifetime of a signed transfer authorization"
    )
    receipt_timeout_seconds: float = Field(
        default=120.0, description="How long to wait for a relayed transaction receipt"
    )
    receipt_poll_interval: float = Field(
        default=2.0, description="Delay between receipt polls in seconds"
    )

    # ======================
    # Signing Service
    # ======================
    signing_service_url: Optional[str] = Field(
        default=None, description="Threshold signing service endpoint"
    )
    signing_service_token: Optional[str] = Field(
        default=None, description="Bearer token for the signing service"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_relayer(self) -> bool:
        """Check if a relayer wallet key is configured."""
        return bool(self.relayer_private_key)

    def get_rpc_url(self, chain_id: int) -> Optional[str]:
        """Get the configured primary RPC URL for a chain, if any."""
        rpc_map = {
            BASE_CHAIN_ID: self.base_rpc_url,
            ETHEREUM_CHAIN_ID: self.ethereum_rpc_url,
            SEPOLIA_CHAIN_ID: self.sepolia_rpc_url,
        }
        return rpc_map.get(chain_id) or None

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "rpc": {
                "base": "***" if self.base_rpc_url else "(not set)",
                "ethereum": "***" if self.ethereum_rpc_url else "(not set)",
                "sepolia": "***" if self.sepolia_rpc_url else "(not set)",
                "alchemy_api_key": "***" if self.alchemy_api_key else "(not set)",
                "timeout": self.rpc_timeout,
            },
            "relayer": {
                "configured": self.has_relayer,
                "authorization_validity_seconds": self.authorization_validity_seconds,
                "receipt_timeout_seconds": self.receipt_timeout_seconds,
            },
            "signing_service": self.signing_service_url or "(not set)",
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
