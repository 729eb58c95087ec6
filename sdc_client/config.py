"""
Configuration Management

Two layers:

- ClientConfig: who the client talks to and how it authenticates. Resolved
  once by resolve_config() and never mutated afterwards.
- Settings: transport knobs (timeout, TLS verification) loaded from
  environment variables with Pydantic Settings.

Identity resolution order (first non-empty wins):
    1. Explicit parameter
    2. Environment variable (SDC_URL, SDC_ACCOUNT, SDC_USER, SDC_KEY_ID, SDC_KEY)
    3. Built-in default (JOYENT_SDC_URL, ~/.ssh/id_rsa)
    4. Derived default (user falls back to account)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


JOYENT_SDC_URL = "https://us-west-1.api.joyentcloud.com"


def default_key_path() -> str:
    """Conventional per-user SSH private key location."""
    return str(Path.home() / ".ssh" / "id_rsa")


@dataclass(frozen=True)
class ClientConfig:
    """
    Resolved client identity.

    Attributes:
        url: CloudAPI endpoint, e.g. https://us-west-1.api.joyentcloud.com
        account: Account login
        user: Acting user (same as account unless RBAC sub-users are used)
        key_id: Key name or fingerprint registered with CloudAPI
        key_path: Path to the PEM private key
    """
    url: str
    account: str
    user: str
    key_id: str
    key_path: str

    @property
    def key_identifier(self) -> str:
        """keyId value for the Authorization header."""
        return f"/{self.user}/keys/{self.key_id}"


def resolve_config(
    url: Optional[str] = None,
    account: Optional[str] = None,
    user: Optional[str] = None,
    key_id: Optional[str] = None,
    key_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """
    Build a ClientConfig from parameters and environment.

    Args:
        url: Endpoint override
        account: Account override
        user: Acting user override
        key_id: Key id override
        key_path: Private key path override
        environ: Environment snapshot (default: os.environ)

    Returns:
        Frozen ClientConfig
    """
    env = os.environ if environ is None else environ

    def pick(explicit: Optional[str], var: str, default: str = "") -> str:
        if explicit:
            return explicit
        return env.get(var) or default

    resolved_account = pick(account, "SDC_ACCOUNT")
    return ClientConfig(
        url=pick(url, "SDC_URL", JOYENT_SDC_URL),
        account=resolved_account,
        # not everybody uses RBAC
        user=pick(user, "SDC_USER", resolved_account),
        key_id=pick(key_id, "SDC_KEY_ID"),
        key_path=pick(key_path, "SDC_KEY") or default_key_path(),
    )


class Settings(BaseSettings):
    """Transport settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SDC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    timeout: Optional[float] = Field(
        None, gt=0, description="Request timeout in seconds (unset: httpx default)"
    )
    verify_ssl: bool = Field(True, description="Verify TLS certificates")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get transport settings (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
