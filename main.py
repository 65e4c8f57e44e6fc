#!/usr/bin/env python3
"""
ToneBridge - Capture-to-render audio routing service
Main entry point for the application
"""

import sys
from tonebridge import __version__
from tonebridge.core.errors import RoutingError
from tonebridge.utils.config import ConfigManager
from tonebridge.utils.logger import setup_logging


def list_devices():
    """Print the device catalog and exit"""
    from tonebridge.cli.interface import RouterCLI

    config_manager = ConfigManager()
    config = config_manager.load_config()
    setup_logging(config['logging']['level'])

    cli = RouterCLI(config_manager=config_manager)
    if not cli.initialize_manager():
        return 1
    try:
        cli.list_devices()
    except RoutingError as e:
        print(f"✗ {e.kind.value}: {e.message}")
        return 1
    return 0


def main():
    """Main entry point"""

    if len(sys.argv) > 1:
        command = sys.argv[1].lower()

        if command == "server":
            from tonebridge.api.server import run_api_server
            print("Starting ToneBridge API server...")
            run_api_server()

        elif command == "cli":
            from tonebridge.cli.interface import RouterCLI
            print("Starting ToneBridge CLI...")
            config_manager = ConfigManager()
            config = config_manager.load_config()
            setup_logging(config['logging']['level'])
            cli = RouterCLI(config_manager=config_manager)
            cli.run_interactive_mode()

        elif command == "devices":
            return list_devices()

        else:
            print(f"Unknown command: {command}")
            print("Available commands: server, cli, devices")
            return 2
    else:
        print("ToneBridge - Capture-to-render audio routing")
        print(f"Version {__version__}")
        print()
        print("Usage:")
        print("  python main.py server   - Start API server")
        print("  python main.py cli      - Interactive CLI mode")
        print("  python main.py devices  - List audio devices")
        print()
        print("Environment:")
        print("  TONEBRIDGE_CHANNEL_COUNT, TONEBRIDGE_SAMPLE_RATE, TONEBRIDGE_SAMPLE_FORMAT,")
        print("  TONEBRIDGE_FRAMES_PER_BUFFER, TONEBRIDGE_HOST_APIS, TONEBRIDGE_HIDE_LOOPBACK,")
        print("  HOST, PORT, LOG_LEVEL")
    return 0


if __name__ == "__main__":
    sys.exit(main())
