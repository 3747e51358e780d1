# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Orchestrator Configuration - Single source of truth.
YAML is king. Env vars ONLY for the config location and log level.

- ALL configuration in plain text (YAML)
- NO hidden state - everything inspectable via `cat`, `grep`
"""

import logging
import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_CONFIG_PATH = "/app/configs/orchestrator.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable orchestrator configuration.
    All values from YAML. No hidden state.
    """

    # -- Confirmation gate --
    confirmation_ttl_seconds: float = 300.0

    # -- Workflows --
    max_parallel_steps: int = 4
    strict_references: bool = True
    workflows_path: Optional[str] = None

    # -- Formatting --
    format_max_results: int = 10
    overview_max_length: int = 150

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"

    def get_workflows_dir(self) -> Optional[Path]:
        return Path(self.workflows_path) if self.workflows_path else None


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.
    """
    if not Path(path).exists():
        # Logging is configured from this object, so report on the root logger
        logging.getLogger(__name__).info("Config not found at %s, using defaults", path)
        return Config(log_level=os.getenv("LOG_LEVEL", "INFO"))

    with open(path) as f:
        y = yaml.safe_load(f) or {}

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    strict = get(y, "workflows", "strict_references")

    return Config(
        # Confirmation gate
        confirmation_ttl_seconds=float(get(y, "confirmation", "ttl_seconds") or 300),

        # Workflows
        max_parallel_steps=int(get(y, "workflows", "max_parallel_steps") or 4),
        strict_references=True if strict is None else bool(strict),
        workflows_path=get(y, "workflows", "path"),

        # Formatting
        format_max_results=int(get(y, "formatting", "max_results") or 10),
        overview_max_length=int(get(y, "formatting", "overview_max_length") or 150),

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "json",
    )


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("ORCHESTRATOR_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
