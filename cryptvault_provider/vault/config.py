"""
Provider Configuration — endpoint, timeout and resource naming.

Reads settings from environment variables:
    CRYPTVAULT_ENDPOINT = <http(s) URL of the CryptVault API>
    CRYPTVAULT_TIMEOUT  = <seconds per remote call, optional>
    CRYPTVAULT_TYPE_PREFIX = <prefix of resource type names, optional>

Security Note:
    Configuration never holds key material or vault tokens; those are
    supplied per resource.
"""
import os
import re
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("cryptvault.provider")

DEFAULT_ENDPOINT = "https://api.cryptvault.cloud/query"
DEFAULT_TYPE_PREFIX = "cryptvault_cloud"

_PREFIX_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def get_timeout() -> Optional[float]:
    """Read the per-call timeout from CRYPTVAULT_TIMEOUT.

    Returns:
        Timeout in seconds, or None if unset or empty.

    Raises:
        ValueError: If the value is not a number.
    """
    raw = os.environ.get("CRYPTVAULT_TIMEOUT")
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError as err:
        raise ValueError(f"CRYPTVAULT_TIMEOUT must be a number, got {raw!r}") from err


class ProviderConfig(BaseModel):
    """Validated provider configuration."""

    endpoint: str = Field(default=DEFAULT_ENDPOINT)
    timeout: Optional[float] = Field(default=None, gt=0)
    type_prefix: str = Field(default=DEFAULT_TYPE_PREFIX)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Endpoint must be an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Unsupported endpoint scheme: {v}")
        return v

    @field_validator("type_prefix")
    @classmethod
    def validate_type_prefix(cls, v: str) -> str:
        if not _PREFIX_PATTERN.match(v):
            raise ValueError(f"Invalid resource type prefix: {v}")
        return v

    @model_validator(mode="after")
    def warn_plain_http(self) -> "ProviderConfig":
        """Plain http is allowed (local testing) but logged."""
        if self.endpoint.startswith("http://"):
            logger.warning("CryptVault endpoint %s is not using TLS", self.endpoint)
        return self

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Create ProviderConfig by loading values from environment.

        Returns:
            Populated ProviderConfig instance.
        """
        return cls(
            endpoint=os.environ.get("CRYPTVAULT_ENDPOINT") or DEFAULT_ENDPOINT,
            timeout=get_timeout(),
            type_prefix=os.environ.get("CRYPTVAULT_TYPE_PREFIX") or DEFAULT_TYPE_PREFIX,
        )
