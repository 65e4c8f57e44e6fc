from tonebridge.utils.logger import logger
from tonebridge.core.models import SampleFormat
from tonebridge.core.negotiator import ConfigurationNegotiator
from tonebridge.core.routing import RouteManager
from tonebridge.devices.catalog import DeviceCatalog
from pathlib import Path
from typing import Dict, Optional
import copy
import os
import yaml

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}

def parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")

def parse_host_apis(value: str) -> list:
    return [api.strip() for api in value.split(",") if api.strip()]

def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"must be positive, got {number}")
    return number

def _sample_format(value: str) -> str:
    return SampleFormat.parse(value).value

# Environment variable -> (section, key, parser)
ENV_OVERRIDES: Dict[str, tuple] = {
    'TONEBRIDGE_CHANNEL_COUNT': ('audio', 'channel_count', _positive_int),
    'TONEBRIDGE_SAMPLE_RATE': ('audio', 'sample_rate', _positive_int),
    'TONEBRIDGE_SAMPLE_FORMAT': ('audio', 'sample_format', _sample_format),
    'TONEBRIDGE_FALLBACK_SAMPLE_FORMAT': ('audio', 'fallback_sample_format', _sample_format),
    'TONEBRIDGE_FRAMES_PER_BUFFER': ('audio', 'frames_per_buffer', _positive_int),
    'TONEBRIDGE_HOST_APIS': ('devices', 'host_apis', parse_host_apis),
    'TONEBRIDGE_HIDE_LOOPBACK': ('devices', 'hide_loopback', parse_bool),
    'HOST': ('api', 'host', str),
    'PORT': ('api', 'port', _positive_int),
    'LOG_LEVEL': ('logging', 'level', str),
}

def _deep_merge(base: Dict, override: Dict) -> Dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base

class ConfigManager:
    """Loads ToneBridge settings from defaults, an optional YAML file and the environment"""

    def __init__(self, config_path: str = "tonebridge_config.yaml",
                 environ: Optional[Dict[str, str]] = None):
        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ
        self.config = self._load_default_config()

    def _load_default_config(self) -> Dict:
        """Load default configuration"""
        return {
            'audio': {
                'channel_count': 2,
                'sample_rate': 48000,
                'sample_format': 'int24',
                'fallback_sample_format': 'int16',
                'frames_per_buffer': 512
            },
            'devices': {
                'host_apis': None,  # None selects the platform's native API
                'hide_loopback': True
            },
            'api': {
                'host': '127.0.0.1',
                'port': 3000,
                'cors_enabled': True
            },
            'logging': {
                'level': 'INFO'
            }
        }

    def load_config(self) -> Dict:
        """Load configuration from file, then apply environment overrides"""
        self.config = self._load_default_config()
        try:
            if self.config_path.exists():
                with open(self.config_path, 'r') as f:
                    loaded_config = yaml.safe_load(f) or {}
                if isinstance(loaded_config, dict):
                    _deep_merge(self.config, loaded_config)
                else:
                    logger.error(f"Ignoring config file {self.config_path}: expected a mapping, "
                                 f"got {type(loaded_config).__name__}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config: {e}")

        self._apply_env_overrides()
        return self.config

    def _apply_env_overrides(self):
        for name, (section, key, parser) in ENV_OVERRIDES.items():
            raw = self.environ.get(name)
            if raw is None:
                continue
            try:
                self.config[section][key] = parser(raw)
            except ValueError as e:
                logger.error(f"Ignoring invalid {name}={raw!r}: {e}")

    def save_config(self, config: Dict = None):
        """Save configuration to file"""
        try:
            config_to_save = copy.deepcopy(config or self.config)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(config_to_save, f, default_flow_style=False)
            logger.info("Configuration saved")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")

    def build_negotiator(self) -> ConfigurationNegotiator:
        audio = self.config['audio']
        return ConfigurationNegotiator(
            channel_count=audio['channel_count'],
            sample_rate=audio['sample_rate'],
            sample_format=SampleFormat.parse(audio['sample_format']),
            fallback_format=SampleFormat.parse(audio['fallback_sample_format']),
            frames_per_buffer=audio['frames_per_buffer']
        )

    def build_catalog(self, backend) -> DeviceCatalog:
        devices = self.config['devices']
        host_apis = devices.get('host_apis')
        if isinstance(host_apis, str):
            host_apis = parse_host_apis(host_apis)
        return DeviceCatalog(backend, host_apis=host_apis, hide_loopback=devices['hide_loopback'])

    def build_route_manager(self, backend=None) -> RouteManager:
        """Route manager wired to this configuration (sounddevice backend by default)"""
        if backend is None:
            # PortAudio is loaded only when real hardware is needed
            from tonebridge.backend.sounddevice_backend import SoundDeviceBackend
            backend = SoundDeviceBackend()
        return RouteManager(
            backend,
            catalog=self.build_catalog(backend),
            negotiator=self.build_negotiator()
        )
