from pydantic import BaseModel, Field
from typing import Any, List, Optional

class DeviceInfo(BaseModel):
    id: int
    name: str
    host_api: str
    max_input_channels: int
    max_output_channels: int
    default_sample_rate: Optional[float] = None
    system_in_use: Optional[bool] = None

class DeviceCatalogData(BaseModel):
    capture: List[DeviceInfo]
    render: List[DeviceInfo]

class CreateRouteRequest(BaseModel):
    capture_id: int = Field(ge=0, description="Capture device id (an output id selects its loopback)")
    render_id: int = Field(ge=0, description="Render device id")

class RouteInfoModel(BaseModel):
    id: int
    capture_device: str
    render_device: str
    created_at: str
    sample_rate: int
    channel_count: int
    sample_format: str

class StatusData(BaseModel):
    uptime_sec: int
    pid: int
    routes_count: int
    routes: List[RouteInfoModel]

class ApiResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
