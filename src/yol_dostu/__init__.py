"""Yol Dostu chat core: configuration, logging and component wiring."""

from .app import build_coordinator
from .config import ApiConfig, ChatConfig, Config, StorageConfig
from .logger import setup_logger

__all__ = [
    "build_coordinator",
    "ApiConfig",
    "ChatConfig",
    "Config",
    "StorageConfig",
    "setup_logger",
]
