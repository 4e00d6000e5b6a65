"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # RPC Configuration
    eth_rpc_url: str = "http://localhost:8545"

    # Contract Addresses
    registry_coordinator_address: str | None = None
    operator_state_retriever_address: str | None = None
    # Derived from the RegistryCoordinator unless both are set
    bls_apk_registry_address: str | None = None
    stake_registry_address: str | None = None

    log_level: str = "WARNING"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
