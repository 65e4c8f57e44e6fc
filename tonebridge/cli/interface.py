from tonebridge.core.errors import RoutingError
from tonebridge.core.routing import RouteManager
from tonebridge.utils.config import ConfigManager
from typing import Optional

HELP_TEXT = """Available commands:
  devices                 - List capture and render devices
  route <capture> <render> - Route a capture device into a render device
  routes                  - List active routes
  stop <id>               - Stop one route
  stopall                 - Stop every route
  status                  - Show uptime and route count
  quit                    - Stop all routes and exit"""

class RouterCLI:
    """Command-line interface for the route manager"""

    def __init__(self, manager: Optional[RouteManager] = None,
                 config_manager: Optional[ConfigManager] = None):
        self.manager = manager
        self.config_manager = config_manager or ConfigManager()

    def initialize_manager(self) -> bool:
        """Create the route manager from configuration"""
        if self.manager is not None:
            return True
        try:
            self.config_manager.load_config()
            self.manager = self.config_manager.build_route_manager()
            print("✓ Route manager initialized")
        except (RoutingError, OSError) as e:
            print(f"✗ Failed to initialize route manager: {e}")
            return False
        return True

    def list_devices(self):
        """List capture and render devices"""
        listing = self.manager.list_devices()
        for title, devices, channels_attr in (
            ("Capture Devices", listing.capture, "max_input_channels"),
            ("Render Devices", listing.render, "max_output_channels"),
        ):
            print(f"\n{title}:")
            print("-" * 80)
            print(f"{'ID':<4} {'Name':<44} {'Host API':<18} {'Ch':<3} {'Rate':<8}")
            print("-" * 80)
            for device in devices:
                rate = device.reported_sample_rate or "-"
                print(f"{device.id:<4} {device.name[:44]:<44} {device.host_api[:18]:<18} "
                      f"{getattr(device, channels_attr):<3} {rate:<8}")

    def create_route(self, capture_id: int, render_id: int):
        route = self.manager.create_route(capture_id, render_id)
        print(f"✓ Route {route.id}: {route.capture_device} -> {route.render_device} "
              f"({route.channel_count}ch, {route.sample_rate}Hz, {route.sample_format})")

    def show_routes(self):
        """Display active routes"""
        routes = self.manager.list_active_routes()
        if not routes:
            print("No active routes")
            return

        print("\nActive Routes:")
        print("-" * 80)
        print(f"{'ID':<4} {'Capture':<30} {'Render':<30} {'Since':<14}")
        print("-" * 80)
        for route in routes:
            print(f"{route.id:<4} {route.capture_device[:30]:<30} {route.render_device[:30]:<30} "
                  f"{route.created_at.strftime('%H:%M:%S'):<14}")

    def stop_route(self, route_id: int):
        if self.manager.stop_route(route_id):
            print(f"✓ Stopped route {route_id}")
        else:
            print(f"✗ Route {route_id} not found")

    def stop_all(self):
        count = self.manager.stop_all_routes()
        print(f"✓ Stopped {count} audio route(s)")

    def show_status(self):
        status = self.manager.status()
        print(f"\nUptime: {status['uptime_sec']}s")
        print(f"PID: {status['pid']}")
        print(f"Active routes: {status['routes_count']}")

    def execute(self, line: str) -> bool:
        """Run one command line; returns False when the session should end"""
        parts = line.strip().split()
        if not parts:
            return True
        command, args = parts[0].lower(), parts[1:]

        if command in ["quit", "exit"]:
            return False

        try:
            if command == "devices":
                self.list_devices()
            elif command == "route" and len(args) == 2:
                self.create_route(int(args[0]), int(args[1]))
            elif command == "routes":
                self.show_routes()
            elif command == "stop" and len(args) == 1:
                self.stop_route(int(args[0]))
            elif command == "stopall":
                self.stop_all()
            elif command == "status":
                self.show_status()
            elif command == "help":
                print(HELP_TEXT)
            else:
                print(f"Unknown command: {line.strip()}")
        except ValueError:
            print("Device and route ids must be integers")
        except RoutingError as e:
            print(f"✗ {e.kind.value}: {e.message}")
        return True

    def run_interactive_mode(self):
        """Run interactive CLI mode"""
        if not self.initialize_manager():
            return

        print("\nToneBridge Interactive Mode")
        print("Commands: devices, route, routes, stop, stopall, status, help, quit")

        try:
            while True:
                try:
                    line = input("\n> ")
                except (KeyboardInterrupt, EOFError):
                    break
                if not self.execute(line):
                    break
        finally:
            print("\nShutting down...")
            self.manager.graceful_shutdown()
