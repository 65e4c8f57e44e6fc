from tonebridge.backend.base import AudioBackend, AudioStream
from tonebridge.devices.catalog import DeviceCatalog
from tonebridge.devices.resolver import resolve_capture, resolve_render
from tonebridge.utils.logger import logger
from .errors import StreamOpenFailed
from .models import DeviceListing, Route, RouteInfo, RouteState
from .negotiator import ConfigurationNegotiator
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import functools
import itertools
import os
import threading
import time

class RouteManager:
    """Creates, tracks and tears down live capture -> render routes.

    The manager exclusively owns the active-route table and the stream handles
    inside it. Every table access, including teardown triggered by backend
    error callbacks, goes through ``self._lock``.
    """

    def __init__(self, backend: AudioBackend, catalog: Optional[DeviceCatalog] = None,
                 negotiator: Optional[ConfigurationNegotiator] = None):
        self.backend = backend
        self.catalog = catalog or DeviceCatalog(backend)
        self.negotiator = negotiator or ConfigurationNegotiator()

        self._routes: Dict[int, Route] = {}
        self._lock = threading.RLock()
        self._ids = itertools.count()
        self._started_at = time.monotonic()

    # Device discovery
    def list_devices(self) -> DeviceListing:
        """Public capture/render device listing"""
        return self.catalog.list_devices()

    # Route lifecycle
    def create_route(self, capture_id: int, render_id: int) -> RouteInfo:
        """Open, pipe and start a route from a capture selection to a render selection"""
        raw_devices = self.catalog.list_devices_raw()
        capture_device = resolve_capture(capture_id, raw_devices)
        render_device = resolve_render(render_id, raw_devices)
        config = self.negotiator.negotiate(capture_device, render_device)

        route = Route(capture_device=capture_device, render_device=render_device, configuration=config)
        logger.debug(
            f"Route requested: {capture_device.name} -> {render_device.name} "
            f"({config.channel_count}ch, {config.sample_rate}Hz, {config.sample_format.value})"
        )

        # Backend calls may block; only registration holds the table lock
        self._set_state(route, RouteState.OPENING)
        self._open_streams(route)
        self._connect_and_start(route)

        with self._lock:
            failure = route.failure
            if failure is None:
                route.id = next(self._ids)
                route.created_at = datetime.now(timezone.utc)
                self._routes[route.id] = route
                self._set_state(route, RouteState.RUNNING)

        if failure is not None:
            self._set_state(route, RouteState.FAILED)
            self._teardown(route)
            raise StreamOpenFailed(
                f"Audio route '{capture_device.name}' -> '{render_device.name}' "
                f"failed while starting: {failure}",
                device_name=capture_device.name
            ) from failure

        logger.info(f"Created route {route.id}: {capture_device.name} -> {render_device.name}")
        return route.info()

    def _open_streams(self, route: Route):
        """Open both streams, walking the format fallback list"""
        last_error: Optional[Exception] = None

        for candidate in self.negotiator.candidates(route.configuration):
            capture_stream = None
            try:
                capture_stream = self.backend.open_capture(route.capture_device.id, candidate, close_on_error=True)
                render_stream = self.backend.open_render(route.render_device.id, candidate, close_on_error=True)
            except Exception as e:
                last_error = e
                logger.warning(f"Opening streams as {candidate.sample_format.value} failed: {e}")
                if capture_stream is not None:
                    self._best_effort(capture_stream.close, "closing capture stream")
                continue

            route.capture_stream = capture_stream
            route.render_stream = render_stream
            route.configuration = candidate
            return

        self._set_state(route, RouteState.FAILED)
        raise StreamOpenFailed(
            f"Failed to open audio streams for '{route.capture_device.name}' -> "
            f"'{route.render_device.name}': {last_error}",
            device_name=route.capture_device.name
        ) from last_error

    def _connect_and_start(self, route: Route):
        """Pipe capture into render, then start capture before render"""
        capture_stream, render_stream = route.capture_stream, route.render_stream
        handler = functools.partial(self._handle_stream_error, route)

        try:
            capture_stream.on_error(handler)
            render_stream.on_error(handler)
            capture_stream.pipe_to(render_stream)
            self._set_state(route, RouteState.PIPED)
            capture_stream.start()
            render_stream.start()
        except Exception as e:
            self._set_state(route, RouteState.FAILED)
            self._teardown(route)
            raise StreamOpenFailed(
                f"Failed to start audio route '{route.capture_device.name}' -> "
                f"'{route.render_device.name}': {e}",
                device_name=route.capture_device.name
            ) from e

    def _handle_stream_error(self, route: Route, error: Exception):
        """Tear down exactly the route whose stream failed"""
        with self._lock:
            if route.id is None:
                # Not registered yet; create_route tears it down instead of inserting
                if route.failure is None:
                    route.failure = error
                return
            if self._routes.get(route.id) is not route:
                logger.debug(f"Ignoring stream error for inactive route: {error}")
                return
            del self._routes[route.id]
            logger.error(f"Route {route.id} stream error: {error}; stopping route")
            self._set_state(route, RouteState.FAILED)
            self._teardown(route)

    def stop_route(self, route_id: int) -> bool:
        """Stop one route; False when the id is not active"""
        with self._lock:
            route = self._routes.pop(route_id, None)
            if route is None:
                return False
            self._teardown(route)
            self._set_state(route, RouteState.STOPPED)

        logger.info(f"Stopped route {route_id}")
        return True

    def stop_all_routes(self) -> int:
        """Stop every route and return how many were active"""
        with self._lock:
            routes = list(self._routes.values())
            self._routes.clear()
            for route in routes:
                self._teardown(route)
                self._set_state(route, RouteState.STOPPED)

        if routes:
            logger.info(f"Stopped {len(routes)} route(s)")
        return len(routes)

    def graceful_shutdown(self):
        """Release every stream handle; safe to call more than once"""
        logger.info("Stopping all audio streams...")
        self.stop_all_routes()
        logger.info("Audio service shutdown complete")

    # Queries
    def list_active_routes(self) -> List[RouteInfo]:
        with self._lock:
            return [route.info() for route in self._routes.values()]

    def get_route(self, route_id: int) -> Optional[RouteInfo]:
        with self._lock:
            route = self._routes.get(route_id)
            return route.info() if route else None

    def status(self) -> Dict[str, Any]:
        routes = self.list_active_routes()
        return {
            'uptime_sec': int(time.monotonic() - self._started_at),
            'pid': os.getpid(),
            'routes_count': len(routes),
            'routes': [route.to_dict() for route in routes]
        }

    # Teardown helpers
    def _teardown(self, route: Route):
        capture_stream: AudioStream = route.capture_stream
        render_stream: AudioStream = route.render_stream

        if capture_stream is not None:
            self._best_effort(capture_stream.unpipe, "unpiping capture stream")
            self._best_effort(capture_stream.stop, "stopping capture stream")
        if render_stream is not None:
            self._best_effort(render_stream.stop, "stopping render stream")
        if capture_stream is not None:
            self._best_effort(capture_stream.close, "closing capture stream")
        if render_stream is not None:
            self._best_effort(render_stream.close, "closing render stream")

    @staticmethod
    def _best_effort(action: Callable[[], Any], description: str):
        try:
            action()
        except Exception as e:
            logger.warning(f"Error {description}: {e}")

    @staticmethod
    def _set_state(route: Route, state: RouteState):
        logger.debug(
            f"Route {route.id if route.id is not None else '-'} "
            f"({route.capture_device.name} -> {route.render_device.name}): "
            f"{route.state.value} -> {state.value}"
        )
        route.state = state
