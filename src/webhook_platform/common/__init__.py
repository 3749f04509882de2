"""Common utilities for the webhook platform."""

from webhook_platform.common.clock import Clock, fixed_clock, system_clock
from webhook_platform.common.settings import Settings, get_settings

__all__ = [
    "Clock",
    "Settings",
    "fixed_clock",
    "get_settings",
    "system_clock",
]
