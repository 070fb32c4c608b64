"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BinanceSettings(BaseSettings):
    """Binance spot ticker source settings."""

    model_config = SettingsConfigDict(env_prefix="BINANCE_")

    enabled: bool = True


class CoinGeckoSettings(BaseSettings):
    """CoinGecko simple-price source settings."""

    model_config = SettingsConfigDict(env_prefix="COINGECKO_")

    enabled: bool = True
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: SecretStr = SecretStr("")


class FixerSettings(BaseSettings):
    """Fixer fiat rate source settings (free tier is EUR-based)."""

    model_config = SettingsConfigDict(env_prefix="FIXER_")

    enabled: bool = True
    base_url: str = "http://data.fixer.io/api"
    api_key: SecretStr = SecretStr("demo")


class HttpSettings(BaseSettings):
    """Outbound HTTP behaviour shared by all providers."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    timeout_seconds: float = 10.0
    user_agent: str = "fxrates/0.1"


class SchedulerSettings(BaseSettings):
    """Ingestion cadence.

    Crypto sources are volatile and polled every minute, fiat rates hourly.
    """

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    crypto_interval_seconds: float = 60.0
    fiat_interval_seconds: float = 3600.0
    history_interval: str = "1m"  # tag stored on every history point


class StorageSettings(BaseSettings):
    """Rate database location."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/rates.db"


class FeeSettings(BaseSettings):
    """Money-transfer fee structure.

    The floor is the same 5 units for EUR and USD, which is not
    currency-equivalent. It is kept per currency so product can set it.
    """

    model_config = SettingsConfigDict(env_prefix="FEES_")

    transfer_fee_percent: Decimal = Decimal("0.015")  # 1.5%
    min_fee_by_currency: dict[str, Decimal] = Field(
        default_factory=lambda: {"EUR": Decimal("5"), "USD": Decimal("5")}
    )
    default_min_fee: Decimal = Decimal("5")


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production
    binance: BinanceSettings = BinanceSettings()
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    fixer: FixerSettings = FixerSettings()
    http: HttpSettings = HttpSettings()
    scheduler: SchedulerSettings = SchedulerSettings()
    storage: StorageSettings = StorageSettings()
    fees: FeeSettings = FeeSettings()
