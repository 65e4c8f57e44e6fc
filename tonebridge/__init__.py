"""ToneBridge - Capture-to-render audio routing service"""

__version__ = "0.1.0"

from tonebridge.core.routing import RouteManager
from tonebridge.core.models import Device, RouteInfo, RouteState, SampleFormat, StreamConfiguration
from tonebridge.core.errors import ErrorKind, RoutingError
from tonebridge.utils.config import ConfigManager

__all__ = [
    "RouteManager",
    "Device",
    "RouteInfo",
    "RouteState",
    "SampleFormat",
    "StreamConfiguration",
    "ErrorKind",
    "RoutingError",
    "ConfigManager",
]
