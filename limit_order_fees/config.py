"""Runtime settings for the limit-order fee forecast engine.

Values are read from environment variables and validated with pydantic.  The
names match the deployment environment of the web service that consumes this
package, so the same ``.env`` file can be shared.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .util.env import optional_rpc_url
from .util.mints import is_valid_solana_mint

# Jupiter Limit Order (v1) program.
JUPITER_LIMIT_ORDER_PROGRAM_ID = "jupoNjAxXgZ4rjzxzPMP4oxduvQsQtZzyknqvzYNrNu"

DEFAULT_CACHE_TTL = 60.0
DEFAULT_BUCKET_SIZE = 0.05
DEFAULT_FEE_RATE = 0.01
DEFAULT_MINT_DECIMALS = 9
DEFAULT_RPC_TIMEOUT = 30.0

# env var -> field name
ENV_VARS: Dict[str, str] = {
    "LIMIT_ORDER_PROGRAM_ID": "program_id",
    "ORDERS_CACHE_TTL": "cache_ttl",
    "BUCKET_SIZE": "bucket_size",
    "CREATOR_FEE_RATE": "fee_rate",
    "DEFAULT_MINT_DECIMALS": "default_decimals",
    "RPC_TIMEOUT": "rpc_timeout",
}


class Settings(BaseModel):
    """Validated engine settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rpc_url: str = ""
    program_id: str = JUPITER_LIMIT_ORDER_PROGRAM_ID
    cache_ttl: float = Field(DEFAULT_CACHE_TTL, ge=0)
    bucket_size: float = Field(DEFAULT_BUCKET_SIZE, gt=0, le=1)
    fee_rate: float = Field(DEFAULT_FEE_RATE, ge=0, le=1)
    default_decimals: int = Field(DEFAULT_MINT_DECIMALS, ge=0, le=18)
    rpc_timeout: float = Field(DEFAULT_RPC_TIMEOUT, gt=0)

    @field_validator("program_id")
    @classmethod
    def _program_id_is_address(cls, value: str) -> str:
        if not is_valid_solana_mint(value):
            raise ValueError("program_id must be a base58 encoded 32-byte address")
        return value

    @field_validator("rpc_url")
    @classmethod
    def _rpc_url_scheme(cls, value: str) -> str:
        value = value.strip()
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("rpc_url must be an http(s) URL")
        return value


def load_settings(
    env: Mapping[str, str] | None = None, **overrides: Any
) -> Settings:
    """Build :class:`Settings` from ``env`` (defaults to ``os.environ``).

    Keyword ``overrides`` take precedence over environment values.  Validation
    failures are raised as ``ValueError``.
    """

    source = os.environ if env is None else env
    data: Dict[str, Any] = {"rpc_url": optional_rpc_url(env=source)}
    for name, field_name in ENV_VARS.items():
        raw = source.get(name)
        if raw is not None and raw.strip():
            data[field_name] = raw.strip()
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc


__all__ = [
    "JUPITER_LIMIT_ORDER_PROGRAM_ID",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_BUCKET_SIZE",
    "DEFAULT_FEE_RATE",
    "DEFAULT_MINT_DECIMALS",
    "Settings",
    "load_settings",
]
