"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, fieldctl.toml only contains
overrides. An empty (or missing) file is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from fieldctl.domain.money import DEFAULT_MAX_DIGITS
from fieldctl.domain.types import RuleKind

# --- fieldctl.toml sections ---


class MoneyConfig(BaseModel):
    """[money] section."""

    model_config = {"frozen": True}

    max_digits: int = Field(default=DEFAULT_MAX_DIGITS, ge=3, le=31)
    grouping: bool = True
    explicit_sign: bool = False


class ValidationConfig(BaseModel):
    """[validation] section.

    ``messages`` overrides the default message template of a rule kind,
    e.g. ``required = "{label} must be supplied"``.
    """

    model_config = {"frozen": True}

    generic_rule_error: str = "validation rule error"
    async_rule_timeout: float = Field(default=5.0, gt=0)
    messages: dict[RuleKind, str] = Field(default_factory=dict)


class FormsConfig(BaseModel):
    """[forms] section.

    ``directory`` holds definitions addressable by form name; a relative
    path is taken from the directory of fieldctl.toml.
    """

    model_config = {"frozen": True}

    directory: str = "forms"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    disabled: list[str] = Field(default_factory=list)
