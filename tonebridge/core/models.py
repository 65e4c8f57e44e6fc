from typing import Any, Dict, List, Optional
from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime

MAX_CHANNELS = 2  # stereo ceiling for every route

class SampleFormat(Enum):
    INT16 = "int16"
    INT24 = "int24"
    INT32 = "int32"
    FLOAT32 = "float32"

    @property
    def bits(self) -> int:
        return {"int16": 16, "int24": 24, "int32": 32, "float32": 32}[self.value]

    @property
    def bytes_per_sample(self) -> int:
        return self.bits // 8

    @classmethod
    def parse(cls, value) -> "SampleFormat":
        """Accept an enum member, a dtype string ("int24") or a bit depth (24)"""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for fmt in cls:
            if text == fmt.value or (text == str(fmt.bits) and fmt is not cls.FLOAT32):
                return fmt
        raise ValueError(f"Unknown sample format: {value}")

class RouteState(Enum):
    REQUESTED = "requested"
    OPENING = "opening"
    PIPED = "piped"
    RUNNING = "running"
    STOPPED = "stopped"
    FAILED = "failed"

@dataclass(frozen=True)
class Device:
    id: int
    name: str
    host_api: str
    max_input_channels: int
    max_output_channels: int
    default_sample_rate: Optional[float] = None
    system_in_use: Optional[bool] = None

    @property
    def is_capture(self) -> bool:
        return self.max_input_channels > 0

    @property
    def is_render(self) -> bool:
        return self.max_output_channels > 0

    @property
    def reported_sample_rate(self) -> Optional[int]:
        if self.default_sample_rate is None or self.default_sample_rate <= 0:
            return None
        return int(round(self.default_sample_rate))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'host_api': self.host_api,
            'max_input_channels': self.max_input_channels,
            'max_output_channels': self.max_output_channels,
            'default_sample_rate': self.default_sample_rate,
            'system_in_use': self.system_in_use
        }

@dataclass
class DeviceListing:
    capture: List[Device] = field(default_factory=list)
    render: List[Device] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[Dict]]:
        return {
            'capture': [d.to_dict() for d in self.capture],
            'render': [d.to_dict() for d in self.render]
        }

@dataclass(frozen=True)
class StreamConfiguration:
    channel_count: int
    sample_rate: int
    sample_format: SampleFormat
    frames_per_buffer: int

    def __post_init__(self):
        if not 1 <= self.channel_count <= MAX_CHANNELS:
            raise ValueError(f"channel_count must be between 1 and {MAX_CHANNELS}, got {self.channel_count}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.frames_per_buffer <= 0:
            raise ValueError(f"frames_per_buffer must be positive, got {self.frames_per_buffer}")

    @property
    def frame_bytes(self) -> int:
        return self.channel_count * self.sample_format.bytes_per_sample

    def with_format(self, sample_format: SampleFormat) -> "StreamConfiguration":
        return replace(self, sample_format=sample_format)

@dataclass(frozen=True)
class RouteInfo:
    id: int
    capture_device: str
    render_device: str
    created_at: datetime
    sample_rate: int
    channel_count: int
    sample_format: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'capture_device': self.capture_device,
            'render_device': self.render_device,
            'created_at': self.created_at.isoformat(),
            'sample_rate': self.sample_rate,
            'channel_count': self.channel_count,
            'sample_format': self.sample_format
        }

@dataclass
class Route:
    capture_device: Device
    render_device: Device
    configuration: StreamConfiguration
    capture_stream: Any = None
    render_stream: Any = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None
    state: RouteState = RouteState.REQUESTED
    failure: Optional[Exception] = None  # stream error reported before the route was registered

    def info(self) -> RouteInfo:
        return RouteInfo(
            id=self.id,
            capture_device=self.capture_device.name,
            render_device=self.render_device.name,
            created_at=self.created_at,
            sample_rate=self.configuration.sample_rate,
            channel_count=self.configuration.channel_count,
            sample_format=self.configuration.sample_format.value
        )
