from tonebridge.core.errors import DeviceNotFound, NoLoopbackProxy, RenderUnsupported
from tonebridge.core.models import Device
from tonebridge.utils.logger import logger
from typing import Optional, Sequence
import re

# Capture devices that mirror an output: WASAPI loopback endpoints, "Stereo Mix"
LOOPBACK_NAME_MARKERS = ("loopback", "stereo mix")
_WORD = re.compile(r"\w+")

def _find_by_id(selected_id: int, devices: Sequence[Device]) -> Optional[Device]:
    for device in devices:
        if device.id == selected_id:
            return device
    return None

def _base_words(name: str) -> set:
    """Lowercase words of a device name up to its first parenthesis"""
    return set(_WORD.findall(name.split("(", 1)[0].lower()))

def _is_loopback_host_api(host_api: str) -> bool:
    return "loopback" in host_api.lower()

def find_loopback_proxy(render: Device, raw_devices: Sequence[Device]) -> Optional[Device]:
    """Return the first capture device that can stand in for a render device's output"""
    render_words = _base_words(render.name)
    render_api = render.host_api.lower()

    for candidate in raw_devices:
        if not candidate.is_capture or candidate.id == render.id:
            continue
        same_api = candidate.host_api.lower() == render_api or _is_loopback_host_api(candidate.host_api)
        if not same_api:
            continue
        name = candidate.name.lower()
        if any(marker in name for marker in LOOPBACK_NAME_MARKERS):
            return candidate
        if render_words & set(_WORD.findall(name)):
            return candidate
    return None

def resolve_capture(selected_id: int, raw_devices: Sequence[Device]) -> Device:
    """Resolve the source end of a route.

    An output-only selection means "capture what this output plays" and is
    served through a loopback proxy.

    Raises:
        NoLoopbackProxy: the selection is output-only and nothing mirrors it.
        DeviceNotFound: no device has this id.
    """
    device = _find_by_id(selected_id, raw_devices)
    if device is None:
        raise DeviceNotFound(selected_id, role="input device")
    if device.is_capture:
        return device

    proxy = find_loopback_proxy(device, raw_devices)
    if proxy is None:
        raise NoLoopbackProxy(device.id, device.name)
    logger.info(f"Using loopback device '{proxy.name}' to capture output '{device.name}'")
    return proxy

def resolve_render(selected_id: int, raw_devices: Sequence[Device]) -> Device:
    """Resolve the destination end of a route.

    Raises:
        RenderUnsupported: the selection is input-only.
        DeviceNotFound: no device has this id.
    """
    device = _find_by_id(selected_id, raw_devices)
    if device is None:
        raise DeviceNotFound(selected_id, role="output device")
    if not device.is_render:
        raise RenderUnsupported(device.id, device.name)
    return device
