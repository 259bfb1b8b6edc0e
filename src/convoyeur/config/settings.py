"""
Convoyeur configuration with hybrid YAML + ENV support.

Priority: Environment variables > YAML config > Pydantic defaults
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletConfig(BaseSettings):
    """Wallet bridge connection settings."""

    bridge_url: str = Field(default="http://127.0.0.1:8768")
    brand: str = Field(
        default="unknown",
        description="Wallet brand reported by the bridge (metamask, ambire)",
    )
    request_timeout: float = Field(default=30.0, ge=1.0, le=600.0)

    @field_validator("brand")
    @classmethod
    def validate_brand(cls, v: str) -> str:
        """Normalize wallet brand."""
        return v.strip().lower() or "unknown"


class TimeoutConfig(BaseSettings):
    """Timeout configuration for outbound calls (seconds)."""

    rpc_call: float = Field(default=5.0, gt=0.0, le=60.0)
    provider_call: float = Field(default=5.0, gt=0.0, le=60.0)
    indexer_call: float = Field(default=5.0, gt=0.0, le=60.0)


class RateLimitRetryConfig(BaseSettings):
    """Retry schedule applied to HTTP 429 responses."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    initial_delay: float = Field(default=1.0, ge=0.0, le=10.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    max_delay: float = Field(default=8.0, ge=0.0, le=120.0)


class ResilienceConfig(BaseSettings):
    """Resilience patterns configuration."""

    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    rate_limit_retry: RateLimitRetryConfig = Field(
        default_factory=RateLimitRetryConfig
    )


class DiscoveryConfig(BaseSettings):
    """Token discovery behavior."""

    max_parallel: int = Field(default=4, ge=1, le=32)
    cache_ttl: float = Field(default=60.0, ge=0.0, le=3600.0)
    verify_contracts: bool = Field(
        default=False,
        description="Check eth_getCode before probing known tokens",
    )


class GasConfig(BaseSettings):
    """Gas price fallback values."""

    default_gas_price_wei: int = Field(default=20_000_000_000, gt=0)
    default_cost: str = Field(default="0.001000")


class ExecutionConfig(BaseSettings):
    """Sequential submission and receipt polling."""

    gas_limit_multiplier: int = Field(default=2, ge=1, le=10)
    default_gas_limit: int = Field(default=100_000, ge=21_000)
    receipt_poll_interval: float = Field(default=2.0, ge=0.0, le=60.0)
    receipt_timeout: float = Field(default=180.0, gt=0.0, le=3600.0)
    inter_transaction_delay: float = Field(default=1.0, ge=0.0, le=60.0)


class ConvoyeurConfig(BaseSettings):
    """Convoyeur configuration schema."""

    model_config = SettingsConfigDict(
        env_prefix="CONVOYEUR_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="allow",
    )

    # Logging
    log_level: str = Field(default="info")
    log_dir: Optional[str] = Field(default=None)
    verbose: int = Field(default=1, ge=0, le=3)

    wallet: WalletConfig = Field(default_factory=WalletConfig)
    resilience: ResilienceConfig = Field(default_factory=ResilienceConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    gas: GasConfig = Field(default_factory=GasConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Environment variables outrank init values, YAML included."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested dictionaries, override wins."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_file: Optional[str] = None) -> ConvoyeurConfig:
    """
    Load configuration from YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        config_file: Optional YAML filename override

    Returns:
        ConvoyeurConfig instance
    """
    env = os.getenv("ENV", "production")

    config_map = {
        "production": "production.yaml",
        "development": "development.yaml",
        "test": "test.yaml",
    }

    current_file = Path(__file__).resolve()
    project_root = current_file.parent.parent.parent.parent
    config_dir = project_root / "config"

    default_config_path = config_dir / "default.yaml"
    merged_config: Dict[str, Any] = {}

    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    if config_file is None:
        config_file = os.getenv("CONVOYEUR_CONFIG")
        if not config_file:
            config_file = config_map.get(env, "production.yaml")

    env_config_path = config_dir / config_file

    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = _deep_merge(merged_config, loaded)

    return ConvoyeurConfig(**merged_config)


# Global settings instance
_settings: Optional[ConvoyeurConfig] = None


def get_settings() -> ConvoyeurConfig:
    """
    Get singleton settings instance.

    Returns:
        ConvoyeurConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings
