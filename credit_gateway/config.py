"""Configuration management using Pydantic Settings"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Trading data source
    data_source_mode: Literal["synthetic", "live"] = "synthetic"
    zero_marker: str = "dead"
    synthetic_seed: Optional[str] = None
    strict_amount_parsing: bool = False

    # OKX DEX API
    okx_base_url: str = "https://web3.okx.com/api/v5/dex/post-transaction"
    okx_api_key: str = ""
    okx_secret_key: str = ""
    okx_passphrase: str = ""
    chain_id: str = "31337"

    # Ledger
    ledger_base_url: str = "http://localhost:8545/ledger"
    ledger_api_key: str = ""
    ledger_confirmation_timeout_seconds: float = 30.0
    ledger_poll_interval_seconds: float = 0.5
    ledger_poll_max_interval_seconds: float = 4.0

    # Repayment pricing: whole currency units per native asset unit
    native_asset_price: int = Field(default=3000, gt=0)

    # Service
    service_name: str = "credit-gateway"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0
    data_source_timeout_seconds: float = 15.0


settings = Settings()
