"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, modcore.toml only contains overrides.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class ExtensionsConfig(BaseModel):
    """[extensions] section."""

    model_config = {"frozen": True}

    discover: bool = True
    local_dir: Path | None = None
    disabled: list[str] = Field(default_factory=list)


class LifecycleLogConfig(BaseModel):
    """[lifecycle_log] section."""

    model_config = {"frozen": True}

    enabled: bool = False
    log_messages: bool = True
