"""
Core module - Configuration and cross-cutting concerns.

This module provides:
- config.py         : Environment-based configuration management
- logging_config.py : Centralized logging setup
- exceptions.py     : Error hierarchy rendered by the API layer
- validators.py     : Inbound request shape checks
- rate_limiter.py   : Per-owner request throttling
- audit.py          : Request audit and security header middleware
"""
from chatrelay.core.config import get_settings, Settings
from chatrelay.core.logging_config import setup_logging, get_logger

__all__ = [
    "get_settings",
    "Settings",
    "setup_logging",
    "get_logger",
]
