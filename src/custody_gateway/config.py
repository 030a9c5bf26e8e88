"""
Configuration management for the custody gateway.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # SDK and direct REST provider (bearer token)
    access_token: str = ""
    bitgo_env: Literal["test", "prod"] = "test"
    bitgo_api_url: str = "https://app.bitgo-test.com/api/v2"

    # Vault provider (Api-Access-Key header)
    anchorage_api_key: str = ""
    anchorage_api_url: str = "https://api.anchorage-staging.com"

    request_timeout: float = 30.0

    default_coins: str = "tbtc"
    transaction_page_size: int = 25

    log_level: str = "INFO"

    def get_default_coins(self) -> list[str]:
        coins = [coin.strip() for coin in self.default_coins.split(",") if coin.strip()]
        return coins or ["tbtc"]


def get_settings() -> Settings:
    return Settings()
