"""Scan configuration. Precedence: CLI > environment > TOML file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Any

import tomllib

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    DEFAULT_ALCHEMY_MAX_PAGES,
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_CONCURRENT_REQUESTS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
)
from .transport import BackoffStrategy, RetryPolicy

load_dotenv()

CONFIG_ENV_VAR = "WALLET_SCAN_CONFIG"
CONFIG_TABLE = "wallet_scan"
SECRET_FIELDS = {"alchemy_api_key", "moralis_api_key"}


def find_config_file() -> Path | None:
    """Locate the TOML config file.

    Order: $WALLET_SCAN_CONFIG, ./wallet-scan.toml, then
    ~/.config/wallet-scan/config.toml. An explicit path is returned even
    when it does not exist.
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)
    for candidate in (
        Path("wallet-scan.toml"),
        Path.home() / ".config" / "wallet-scan" / "config.toml",
    ):
        if candidate.exists():
            return candidate
    return None


class TomlConfigSource(PydanticBaseSettingsSource):
    """Lowest-precedence source reading a TOML file.

    Accepts the keys at top level or under a ``[wallet_scan]`` table and
    refuses files that carry credentials.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
        super().__init__(settings_cls)
        self._path = path

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}

        with self._path.open("rb") as f:
            data = tomllib.load(f)
        body = data.get(CONFIG_TABLE, data)
        if not isinstance(body, dict):
            return {}

        leaked = sorted(SECRET_FIELDS & body.keys())
        if leaked:
            raise ValueError(
                f"Security violation: {', '.join(leaked)} found in {self._path}. "
                "API keys are only read from the environment."
            )
        return body


class ChainSettings(BaseModel):
    """Per-chain overrides, usually from a ``[chains.<id>]`` table."""

    enabled: bool = True
    native_endpoints: list[str] = Field(default_factory=list)
    token_endpoints: list[str] = Field(default_factory=list)
    request_timeout: float | None = Field(default=None, gt=0)
    retry_attempts: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="ignore")


class ScanSettings(BaseSettings):
    """Everything that shapes a scan: credentials, transport policy, chains.

    Sources, highest first: init kwargs (the CLI), ``WALLET_SCAN_*``
    environment variables (``.env`` is loaded into the environment), the
    TOML file found by ``find_config_file``.
    """

    # --- provider credentials (environment only) ---
    alchemy_api_key: SecretStr | None = None
    moralis_api_key: SecretStr | None = None

    # --- transport policy ---
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="Per-call timeout in seconds.",
    )
    retry_attempts: int = Field(
        default=DEFAULT_RETRY_ATTEMPTS,
        ge=1,
        description="Total tries per endpoint call, including the first.",
    )
    backoff_base: float = Field(
        default=DEFAULT_BACKOFF_BASE,
        ge=0,
        description="Base delay in seconds between retries.",
    )
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    max_concurrent_requests: int = Field(
        default=DEFAULT_MAX_CONCURRENT_REQUESTS,
        ge=1,
        description="Requests in flight at once across all sources.",
    )

    # --- providers ---
    alchemy_max_pages: int = Field(default=DEFAULT_ALCHEMY_MAX_PAGES, ge=1)

    # --- registry shaping ---
    # comma separated in env, e.g. WALLET_SCAN_ENABLED_CHAINS=ethereum,solana
    enabled_chains: Annotated[list[str] | None, NoDecode] = None
    chains: dict[str, ChainSettings] = Field(default_factory=dict)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="WALLET_SCAN_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("alchemy_api_key", "moralis_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr; treat blank values as unset."""
        if v is None or isinstance(v, SecretStr):
            return v
        if isinstance(v, str) and not v.strip():
            return None
        return SecretStr(v)

    @field_validator("enabled_chains", mode="before")
    @classmethod
    def split_enabled_chains(cls, v: Any) -> Any:
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [str(item).strip().lower() for item in v if str(item).strip()]
        return v

    @field_validator("chains", mode="before")
    @classmethod
    def normalize_chain_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(key).lower(): value for key, value in v.items()}
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, find_config_file()),  # FILE (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Dump for --show-config with API keys replaced."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            attempts=self.retry_attempts,
            backoff_base=self.backoff_base,
            strategy=self.backoff_strategy,
        )

    @property
    def alchemy_key(self) -> str | None:
        return self.alchemy_api_key.get_secret_value() if self.alchemy_api_key else None

    @property
    def moralis_key(self) -> str | None:
        return self.moralis_api_key.get_secret_value() if self.moralis_api_key else None

    def chain_settings(self, chain_id: str) -> ChainSettings:
        return self.chains.get(chain_id, ChainSettings())

    def is_chain_enabled(self, chain_id: str) -> bool:
        if self.enabled_chains is not None and chain_id not in self.enabled_chains:
            return False
        return self.chain_settings(chain_id).enabled
