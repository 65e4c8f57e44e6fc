from tonebridge.backend.base import AudioBackend
from tonebridge.core.models import Device, DeviceListing
from tonebridge.utils.logger import logger
from typing import Iterable, List, Optional, Sequence
import sys

LOOPBACK_MARKER = "loopback"

def default_host_apis() -> List[str]:
    """The native low-latency host API for this platform"""
    if sys.platform.startswith("win"):
        return ["Windows WASAPI"]
    if sys.platform == "darwin":
        return ["Core Audio"]
    return ["ALSA"]

def is_loopback_name(name: str) -> bool:
    return LOOPBACK_MARKER in name.lower()

def dedupe_by_name(devices: Iterable[Device]) -> List[Device]:
    """Drop devices whose lowercase name was already seen, keeping first occurrence"""
    seen = set()
    unique = []
    for device in devices:
        key = device.name.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(device)
    return unique

def filter_devices(devices: Sequence[Device], host_apis: Sequence[str],
                   hide_loopback: bool = True) -> DeviceListing:
    """Build the public device listing from a raw enumeration"""
    allowed = {api.strip().lower() for api in host_apis if api.strip()}
    if allowed:
        devices = [d for d in devices if d.host_api.lower() in allowed]

    capture = [d for d in devices if d.is_capture]
    if hide_loopback:
        capture = [d for d in capture if not is_loopback_name(d.name)]
    render = [d for d in devices if d.is_render]

    return DeviceListing(capture=dedupe_by_name(capture), render=dedupe_by_name(render))

class DeviceCatalog:
    """Device discovery with host API allow-listing and loopback hiding"""

    def __init__(self, backend: AudioBackend, host_apis: Optional[Sequence[str]] = None,
                 hide_loopback: bool = True):
        self.backend = backend
        self.host_apis = list(default_host_apis() if host_apis is None else host_apis)
        self.hide_loopback = hide_loopback

    def list_devices_raw(self) -> List[Device]:
        """Unfiltered enumeration, including hidden loopback devices"""
        return list(self.backend.enumerate())

    def list_devices(self) -> DeviceListing:
        """Filtered capture and render devices, recomputed on every call"""
        raw = self.list_devices_raw()
        listing = filter_devices(raw, self.host_apis, self.hide_loopback)
        logger.debug(
            f"Catalog: {len(raw)} raw devices -> "
            f"{len(listing.capture)} capture, {len(listing.render)} render"
        )
        return listing
