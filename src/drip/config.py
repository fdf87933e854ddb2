"""Configuration management for DRIP using Pydantic Settings."""

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from drip.chain.coins import Coin, DecCoin, parse_coin, parse_dec_coins


class DripConfig(BaseSettings):
    """DRIP service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    lcd_endpoint: str = Field(alias="DRIP_LCD_ENDPOINT")
    chain_id: str = Field(alias="DRIP_CHAIN_ID", min_length=1)
    account_prefix: str = Field(default="cosmos", alias="DRIP_ACCOUNT_PREFIX", min_length=1)

    # Keys
    key_name: str = Field(default="faucet", alias="DRIP_KEY_NAME", min_length=1)
    private_key: SecretStr | None = Field(default=None, alias="DRIP_PRIVATE_KEY")
    private_key_file: str | None = Field(default=None, alias="DRIP_PRIVATE_KEY_FILE")

    # Transaction
    amount: str = Field(default="1000uatom", alias="DRIP_AMOUNT")
    gas: int = Field(default=200000, alias="DRIP_GAS", gt=0)
    gas_adjustment: float = Field(default=1.0, alias="DRIP_GAS_ADJUSTMENT", gt=0)
    gas_prices: str = Field(default="0.025uatom", alias="DRIP_GAS_PRICES")
    memo: str = Field(default="", alias="DRIP_MEMO")
    broadcast_timeout_seconds: float = Field(
        default=30.0, alias="DRIP_BROADCAST_TIMEOUT_SECONDS", gt=0
    )

    # Rate limiting
    cooldown_seconds: int = Field(default=300, alias="DRIP_COOLDOWN_SECONDS", gt=0)
    sweep_interval_seconds: int = Field(default=60, alias="DRIP_SWEEP_INTERVAL_SECONDS", gt=0)

    # Faucet HTTP server
    listen_host: str = Field(default="0.0.0.0", alias="DRIP_LISTEN_HOST")  # noqa: S104
    listen_port: int = Field(default=8000, alias="DRIP_LISTEN_PORT", ge=1, le=65535)

    # Observability
    metrics_port: int = Field(default=8080, alias="DRIP_METRICS_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="DRIP_LOG_LEVEL")
    log_format: str = Field(default="json", alias="DRIP_LOG_FORMAT")

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: str) -> str:
        parse_coin(value)
        return value.strip()

    @field_validator("gas_prices")
    @classmethod
    def _check_gas_prices(cls, value: str) -> str:
        parse_dec_coins(value)
        return value

    @property
    def amount_coin(self) -> Coin:
        """Fixed amount sent per request."""
        return parse_coin(self.amount)

    @property
    def gas_price_coins(self) -> list[DecCoin]:
        """Gas prices used to compute the fee."""
        return parse_dec_coins(self.gas_prices)
