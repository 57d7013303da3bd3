"""Pydantic models for httpchain configuration.

Configuration models are serialised as JSON in the user's config directory:
:class:`GlobalConfig` holds user-wide preferences, and every
:class:`ClientProfile` describes one pre-configured
:class:`~httpchain.client.Client` (base URL, default headers and query,
content negotiation, timeout and 404 handling).

All models use Pydantic v2.  Profiles use ``extra="allow"`` so keys written
by newer versions survive a load/save round-trip.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/httpchain/config.json``.

    Loaded and saved by :func:`~httpchain.config.load_global_config` and
    :func:`~httpchain.config.save_global_config`.  Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags.  See :func:`~httpchain.config.resolve_config`.
    """

    default_profile: Optional[str] = None
    output: OutputConfig = Field(default_factory=OutputConfig)


class ClientProfile(BaseModel):
    """A named client configuration stored under the ``profiles/`` directory.

    Applied to a new client by :meth:`Client.from_profile
    <httpchain.client.Client.from_profile>`.

    Example::

        ClientProfile(
            name="billing",
            base_url="https://billing.internal/api",
            headers={"Authorization": "Bearer ..."},
            timeout=10,
        )
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: Optional[str] = Field(
        default=None, description="URL relative request paths resolve against"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    query: dict[str, str] = Field(
        default_factory=dict, description="Query parameters added to every request"
    )
    content_type: Optional[str] = Field(
        default=None, description="Content-Type used to encode request bodies"
    )
    accept: list[str] = Field(
        default_factory=list, description="Values of the Accept header"
    )
    timeout: Optional[float] = Field(
        default=None, description="Request timeout in seconds"
    )
    ignore_404: bool = Field(
        default=False, description="Do not treat 404 responses as errors"
    )

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive")
        return value
