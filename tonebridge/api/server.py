from tonebridge import __version__
from tonebridge.core.errors import ErrorKind, RoutingError
from tonebridge.core.routing import RouteManager
from tonebridge.utils.config import ConfigManager
from tonebridge.utils.logger import logger, setup_logging
from tonebridge.api.models import ApiResponse, CreateRouteRequest, DeviceCatalogData, RouteInfoModel, StatusData
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import atexit
import uvicorn

ERROR_STATUS_CODES = {
    ErrorKind.DEVICE_NOT_FOUND: 404,
    ErrorKind.NO_LOOPBACK_PROXY: 400,
    ErrorKind.RENDER_UNSUPPORTED: 400,
    ErrorKind.STREAM_OPEN_FAILED: 409,
    ErrorKind.BACKEND_UNAVAILABLE: 503,
}

router = APIRouter(prefix="/api")

def get_manager(request: Request) -> RouteManager:
    manager = getattr(request.app.state, "manager", None)
    if manager is None:
        raise HTTPException(status_code=500, detail="Route manager not initialized")
    return manager

# ==============================================================================
# API Endpoints
# ==============================================================================

@router.get("/devices", response_model=ApiResponse)
def get_devices(manager: RouteManager = Depends(get_manager)):
    """List capture and render devices"""
    listing = manager.list_devices()
    return ApiResponse(data=DeviceCatalogData(**listing.to_dict()))

@router.post("/route", response_model=ApiResponse)
def create_route(request: CreateRouteRequest, manager: RouteManager = Depends(get_manager)):
    """Start routing audio from a capture device to a render device"""
    route = manager.create_route(request.capture_id, request.render_id)
    return ApiResponse(
        message="Audio route started successfully",
        data=RouteInfoModel(**route.to_dict())
    )

@router.post("/stop", response_model=ApiResponse)
def stop_all_routes(manager: RouteManager = Depends(get_manager)):
    """Stop every active route"""
    stopped_count = manager.stop_all_routes()
    return ApiResponse(
        message=f"Stopped {stopped_count} audio route(s)",
        data={"stopped_count": stopped_count}
    )

@router.get("/routes", response_model=ApiResponse)
def list_routes(manager: RouteManager = Depends(get_manager)):
    """List active routes in creation order"""
    routes = manager.list_active_routes()
    return ApiResponse(data=[RouteInfoModel(**route.to_dict()) for route in routes])

@router.post("/route/{route_id}/stop", response_model=ApiResponse)
def stop_route(route_id: int, manager: RouteManager = Depends(get_manager)):
    """Stop a single route"""
    if not manager.stop_route(route_id):
        return JSONResponse(status_code=404, content={"success": False, "message": "Route not found"})
    return ApiResponse(message=f"Stopped route {route_id}")

@router.get("/status", response_model=ApiResponse)
def get_status(manager: RouteManager = Depends(get_manager)):
    """Uptime, process id and active routes"""
    return ApiResponse(data=StatusData(**manager.status()))

async def routing_error_handler(request: Request, exc: RoutingError):
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind.value}: {exc.message}")
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.kind, 500),
        content={"success": False, **exc.to_dict()}
    )

def create_app(manager: Optional[RouteManager] = None,
               config_manager: Optional[ConfigManager] = None) -> FastAPI:
    """Build the FastAPI app around a route manager.

    When no manager is given, one backed by sounddevice is created at startup.
    Shutdown always releases every stream the manager holds.
    """
    if config_manager is None:
        config_manager = ConfigManager()
        config_manager.load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.manager is None:
            app.state.manager = config_manager.build_route_manager()
        logger.info("Route manager ready")
        try:
            yield
        finally:
            app.state.manager.graceful_shutdown()

    app = FastAPI(
        title="ToneBridge API",
        description="Route audio between capture and render devices",
        version=__version__,
        lifespan=lifespan
    )
    app.state.manager = manager
    app.state.config_manager = config_manager

    if config_manager.config['api'].get('cors_enabled', True):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RoutingError, routing_error_handler)
    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "ToneBridge API",
            "version": __version__,
            "status": "running" if app.state.manager is not None else "stopped"
        }

    return app

def run_api_server():
    """Run the FastAPI server"""
    config_manager = ConfigManager()
    config = config_manager.load_config()
    setup_logging(config['logging']['level'])

    manager = config_manager.build_route_manager()
    atexit.register(manager.graceful_shutdown)
    app = create_app(manager=manager, config_manager=config_manager)

    api_config = config['api']
    logger.info(f"Starting ToneBridge API server on {api_config['host']}:{api_config['port']}")
    uvicorn.run(
        app,
        host=api_config['host'],
        port=api_config['port'],
        log_level=config['logging']['level'].lower()
    )
