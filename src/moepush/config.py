"""
Configuration for moepush.

Provides:
- Path constants (MOEPUSH_HOME, MOEPUSH_CONFIG_FILE)
- Configuration models (RelayConfig, MoepushConfig)
- Config loading/saving functions
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

MOEPUSH_HOME: Path = Path.home() / ".moepush"
MOEPUSH_CONFIG_FILE: Path = MOEPUSH_HOME / "config.yaml"


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class RelayConfig(BaseModel):
    """Settings for push delivery."""

    timeout: float = 10.0  # seconds per outbound call
    token_refresh_buffer: float = 300  # seconds before token expiry to refresh
    log_body_limit: int = 256  # max chars of inbound/provider bodies in logs
    endpoints_file: Optional[str] = None


class MoepushConfig(BaseModel):
    """Top-level configuration."""

    relay: RelayConfig = Field(default_factory=RelayConfig)


# ---------------------------------------------------------------------------
# Config loading/saving
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> MoepushConfig:
    """Load configuration from YAML file, or return defaults."""
    path = path or MOEPUSH_CONFIG_FILE
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text()) or {}
            return MoepushConfig(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
    return MoepushConfig()


def save_config(config: MoepushConfig, path: Path | None = None) -> None:
    """Save configuration to YAML file."""
    path = path or MOEPUSH_CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(config.model_dump(), default_flow_style=False))
