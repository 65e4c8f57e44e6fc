# ToneBridge API Client
# Example client for communicating with the routing service

import requests
from typing import Dict, List, Optional


class ToneBridgeAPIError(Exception):
    """Non-success response from the ToneBridge API"""

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(f"{status_code}: {error + ': ' if error else ''}{message}")
        self.status_code = status_code
        self.message = message
        self.error = error


class ToneBridgeClient:
    """Client for communicating with the ToneBridge API"""

    def __init__(self, base_url: str = "http://localhost:3000", session=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def _handle(self, response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            message = body.get("message") or body.get("detail") or response.text
            raise ToneBridgeAPIError(response.status_code, str(message), body.get("error"))
        return body

    # Devices
    def get_devices(self) -> Dict[str, List[Dict]]:
        """Get capture and render devices"""
        response = self.session.get(f"{self.base_url}/api/devices")
        return self._handle(response)["data"]

    # Routes
    def create_route(self, capture_id: int, render_id: int) -> Dict:
        """Start routing capture_id into render_id"""
        data = {"capture_id": capture_id, "render_id": render_id}
        response = self.session.post(f"{self.base_url}/api/route", json=data)
        return self._handle(response)["data"]

    def list_routes(self) -> List[Dict]:
        """Get active routes"""
        response = self.session.get(f"{self.base_url}/api/routes")
        return self._handle(response)["data"]

    def stop_route(self, route_id: int) -> bool:
        """Stop one route; False if it was not active"""
        response = self.session.post(f"{self.base_url}/api/route/{route_id}/stop")
        if response.status_code == 404:
            return False
        self._handle(response)
        return True

    def stop_all_routes(self) -> int:
        """Stop every route and return how many were stopped"""
        response = self.session.post(f"{self.base_url}/api/stop")
        return self._handle(response)["data"]["stopped_count"]

    def get_status(self) -> Dict:
        """Get uptime, pid and active routes"""
        response = self.session.get(f"{self.base_url}/api/status")
        return self._handle(response)["data"]


# Usage Example
if __name__ == "__main__":
    client = ToneBridgeClient()

    status = client.get_status()
    print(f"Service pid {status['pid']}, up {status['uptime_sec']}s")

    devices = client.get_devices()
    print(f"Found {len(devices['capture'])} capture and {len(devices['render'])} render devices")

    if devices["capture"] and devices["render"]:
        route = client.create_route(devices["capture"][0]["id"], devices["render"][0]["id"])
        print(f"Created route {route['id']}: {route['capture_device']} -> {route['render_device']}")
        print(f"Stopped {client.stop_all_routes()} route(s)")
