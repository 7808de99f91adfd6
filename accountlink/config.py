"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
The resulting object is frozen and handed explicitly to the services that need it.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class AccountLinkConfig(BaseSettings):
    """Account link service configuration"""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTLINK_",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    # Database configuration
    database_url: str = "sqlite:///accountlink.db"  # memory:// for tests

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Token configuration
    jwt_secret: str = ""  # Empty means unavailable; minting fails
    jwt_ttl_seconds: int = 900

    # OAuth (Discord) configuration
    oauth_client_id: str = ""
    oauth_client_secret: str = ""
    oauth_redirect_url: str = "http://localhost:3000/auth/callback"
    oauth_authorize_url: str = "https://discord.com/oauth2/authorize"
    oauth_token_url: str = "https://discord.com/api/oauth2/token"
    oauth_profile_url: str = "https://discord.com/api/users/@me"
    oauth_scopes: str = "identify"  # Space separated
    oauth_timeout: float = 5.0
    oauth_state_ttl_seconds: int = 600

    # Access gate
    gate_enforce_account_match: bool = False

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    @property
    def scope_list(self) -> List[str]:
        """Requested OAuth scopes as a list"""
        return [scope for scope in self.oauth_scopes.split() if scope]


# Global configuration instance
config = AccountLinkConfig()


def get_config() -> AccountLinkConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AccountLinkConfig:
    """Reload configuration from environment"""
    global config
    config = AccountLinkConfig()
    return config
