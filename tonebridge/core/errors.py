from typing import Any, Dict, Optional
from enum import Enum

class ErrorKind(Enum):
    BACKEND_UNAVAILABLE = "BackendUnavailable"
    DEVICE_NOT_FOUND = "DeviceNotFound"
    NO_LOOPBACK_PROXY = "NoLoopbackProxy"
    RENDER_UNSUPPORTED = "RenderUnsupported"
    STREAM_OPEN_FAILED = "StreamOpenFailed"
    STREAM_RUNTIME_ERROR = "StreamRuntimeError"

class RoutingError(Exception):
    """Base class for routing failures.

    Every subclass carries a fixed ``kind`` so callers branch on the kind
    rather than on message text.
    """

    kind: ErrorKind

    def __init__(self, message: str, device_id: Optional[int] = None,
                 device_name: Optional[str] = None, route_id: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.device_id = device_id
        self.device_name = device_name
        self.route_id = route_id

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'error': self.kind.value, 'message': self.message}
        if self.device_id is not None:
            data['device_id'] = self.device_id
        if self.device_name is not None:
            data['device_name'] = self.device_name
        if self.route_id is not None:
            data['route_id'] = self.route_id
        return data

class BackendUnavailable(RoutingError):
    """Raised when the audio backend cannot enumerate devices"""
    kind = ErrorKind.BACKEND_UNAVAILABLE

class DeviceNotFound(RoutingError):
    """Raised when a selected device id matches no known device"""
    kind = ErrorKind.DEVICE_NOT_FOUND

    def __init__(self, device_id: int, role: str = "device"):
        super().__init__(f"{role.capitalize()} with ID {device_id} not found", device_id=device_id)
        self.role = role

class NoLoopbackProxy(RoutingError):
    """Raised when a render-only device is chosen as source and has no loopback capture"""
    kind = ErrorKind.NO_LOOPBACK_PROXY

    def __init__(self, device_id: int, device_name: str):
        super().__init__(f"No loopback capture device found for output '{device_name}'",
                         device_id=device_id, device_name=device_name)

class RenderUnsupported(RoutingError):
    """Raised when a capture-only device is chosen as destination.

    Sending audio into a microphone-class device needs a virtual cable driver,
    which ToneBridge does not provide.
    """
    kind = ErrorKind.RENDER_UNSUPPORTED

    def __init__(self, device_id: int, device_name: str):
        super().__init__(f"Device '{device_name}' is an input-only device and cannot play audio",
                         device_id=device_id, device_name=device_name)

class StreamOpenFailed(RoutingError):
    """Raised when the backend rejects every candidate stream configuration"""
    kind = ErrorKind.STREAM_OPEN_FAILED

class StreamRuntimeError(RoutingError):
    """Reported to error handlers when a running stream fails"""
    kind = ErrorKind.STREAM_RUNTIME_ERROR
