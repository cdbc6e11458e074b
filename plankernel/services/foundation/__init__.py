"""Settings and logging shared by every kernel component."""

from .logging_config import JsonFormatter, setup_logging
from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings", "JsonFormatter", "setup_logging"]
