from __future__ import annotations

"""Public configuration API for QueryEngine."""

from QueryEngine.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from QueryEngine.config.engine import EngineConfig
from QueryEngine.config.output import OutputConfig
from QueryEngine.config.remote import RemoteConfig
from QueryEngine.config.runtime import RuntimeConfig

__all__ = [
    "RuntimeConfig",
    "RemoteConfig",
    "EngineConfig",
    "OutputConfig",
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
