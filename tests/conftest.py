"""Shared pytest configuration and fixtures for the ToneBridge test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tests.fakes import FakeBackend
from tonebridge.core.models import Device
from tonebridge.core.negotiator import ConfigurationNegotiator
from tonebridge.core.routing import RouteManager
from tonebridge.devices.catalog import DeviceCatalog


# =============================================================================
# Device fixtures
# =============================================================================

MIC = Device(id=1, name="Mic", host_api="Windows WASAPI",
             max_input_channels=2, max_output_channels=0, default_sample_rate=48000.0)
SPEAKERS = Device(id=2, name="Speakers", host_api="Windows WASAPI",
                  max_input_channels=0, max_output_channels=2, default_sample_rate=48000.0)


@pytest.fixture
def basic_devices():
    return [MIC, SPEAKERS]


@pytest.fixture
def backend(basic_devices):
    return FakeBackend(basic_devices)


@pytest.fixture
def manager(backend):
    catalog = DeviceCatalog(backend, host_apis=[], hide_loopback=True)
    return RouteManager(backend, catalog=catalog, negotiator=ConfigurationNegotiator())
