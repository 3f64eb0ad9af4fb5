from pathlib import Path
from typing import Any, Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Quote lifecycle
    quote_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="Seconds a stored quote stays valid for transaction building",
    )

    # Cache Settings
    token_cache_ttl_seconds: int = Field(
        default=1800,
        ge=1,
        description="TTL for token metadata (decimals, symbol)",
    )
    balance_cache_ttl_seconds: int = Field(
        default=60,
        ge=1,
        description="TTL for cached wallet balances",
    )
    cache_cleanup_interval_seconds: int = Field(
        default=300,
        ge=1,
        description="Interval between sweeps of expired cache and quote entries",
    )

    # Amount handling
    balance_tolerance_percentage: float = Field(
        default=0.5,
        ge=0,
        lt=100,
        description="Percentage slack allowed when comparing required vs available amounts",
    )
    default_slippage: float = Field(default=0.5, ge=0, le=50, description="Default swap slippage (%)")
    default_network: str = Field(default="bnb", description="Network used when a tool call omits one")

    # Chain RPC
    rpc_timeout_seconds: int = Field(default=30, description="Chain RPC request timeout")
    rpc_urls: Dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of network name to JSON-RPC endpoint, e.g. {\"bnb\": \"https://...\"}",
    )
    enabled_networks: List[str] = Field(
        default_factory=list,
        description="Networks exposed to the agent (empty = every network with an RPC URL)",
    )

    @field_validator("rpc_urls", mode="before")
    @classmethod
    def _lowercase_networks(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k).lower(): v for k, v in value.items() if v}
        return value

    @property
    def configured_networks(self) -> List[str]:
        if self.enabled_networks:
            return [n.lower() for n in self.enabled_networks]
        return sorted(self.rpc_urls.keys())


# Global settings instance
settings = Settings()
