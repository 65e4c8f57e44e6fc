"""Tests for capture/render resolution and the loopback proxy heuristic."""

import pytest

from tonebridge.core.errors import DeviceNotFound, ErrorKind, NoLoopbackProxy, RenderUnsupported
from tonebridge.core.models import Device
from tonebridge.devices.resolver import find_loopback_proxy, resolve_capture, resolve_render


def _device(device_id, name, host_api="Windows WASAPI", inputs=0, outputs=0):
    return Device(id=device_id, name=name, host_api=host_api,
                  max_input_channels=inputs, max_output_channels=outputs,
                  default_sample_rate=48000.0)


MIC = _device(1, "Microphone (USB Audio)", inputs=2)
SPEAKERS = _device(2, "Speakers (Realtek)", outputs=2)
SPEAKERS_LOOPBACK = _device(3, "Speakers (Realtek) Loopback", inputs=2)
HEADSET = _device(4, "Headset", inputs=1, outputs=2)
HDMI = _device(5, "HDMI Output (NVIDIA)", outputs=2)


class TestResolveCapture:
    def test_capture_device_returned_as_is(self):
        assert resolve_capture(1, [MIC, SPEAKERS]) is MIC

    def test_duplex_device_is_its_own_capture(self):
        assert resolve_capture(4, [MIC, HEADSET, SPEAKERS_LOOPBACK]) is HEADSET

    def test_render_selection_resolves_to_sibling_loopback(self):
        raw = [MIC, SPEAKERS, SPEAKERS_LOOPBACK]
        assert resolve_capture(2, raw) is SPEAKERS_LOOPBACK

    def test_stereo_mix_is_a_loopback_proxy(self):
        stereo_mix = _device(6, "Stereo Mix (Realtek High Definition)", inputs=2)
        assert resolve_capture(5, [MIC, HDMI, stereo_mix]) is stereo_mix

    def test_proxy_matched_by_shared_name_word(self):
        render = _device(7, "Headphones (Bose QC35)", outputs=2)
        hands_free = _device(8, "Headphones Hands-Free (Bose QC35)", inputs=1)
        assert resolve_capture(7, [MIC, render, hands_free]) is hands_free

    def test_loopback_host_api_accepted_across_apis(self):
        proxy = _device(9, "Speakers (Realtek) [Loopback]", host_api="Windows WASAPI Loopback", inputs=2)
        assert resolve_capture(2, [SPEAKERS, proxy]) is proxy

    def test_proxy_on_other_host_api_is_ignored(self):
        mme_loopback = _device(10, "Speakers (Realtek) Loopback", host_api="MME", inputs=2)
        with pytest.raises(NoLoopbackProxy) as exc_info:
            resolve_capture(2, [MIC, SPEAKERS, mme_loopback])
        assert exc_info.value.device_name == "Speakers (Realtek)"
        assert exc_info.value.kind is ErrorKind.NO_LOOPBACK_PROXY

    def test_first_match_in_catalog_order_wins(self):
        second = _device(11, "Speakers (Realtek) Loopback 2", inputs=2)
        assert resolve_capture(2, [SPEAKERS, SPEAKERS_LOOPBACK, second]) is SPEAKERS_LOOPBACK

    def test_no_proxy_raises_with_render_name(self):
        with pytest.raises(NoLoopbackProxy, match="HDMI Output"):
            resolve_capture(5, [MIC, SPEAKERS, HDMI])

    def test_unknown_id_raises_device_not_found(self):
        with pytest.raises(DeviceNotFound) as exc_info:
            resolve_capture(999, [MIC, SPEAKERS])
        assert exc_info.value.device_id == 999

    def test_proxy_is_always_capture_capable(self):
        raw = [MIC, SPEAKERS, SPEAKERS_LOOPBACK, HEADSET, HDMI]
        for device in raw:
            try:
                resolved = resolve_capture(device.id, raw)
            except NoLoopbackProxy:
                continue
            assert resolved.is_capture

    def test_input_is_not_mutated(self):
        raw = [MIC, SPEAKERS, SPEAKERS_LOOPBACK]
        snapshot = list(raw)
        resolve_capture(2, raw)
        assert raw == snapshot


def test_find_loopback_proxy_skips_render_only_devices():
    assert find_loopback_proxy(SPEAKERS, [SPEAKERS, HDMI]) is None


class TestResolveRender:
    def test_render_device_returned(self):
        assert resolve_render(2, [MIC, SPEAKERS]) is SPEAKERS

    def test_duplex_device_can_render(self):
        assert resolve_render(4, [HEADSET]) is HEADSET

    def test_capture_only_device_is_unsupported(self):
        with pytest.raises(RenderUnsupported) as exc_info:
            resolve_render(1, [MIC, SPEAKERS])
        assert exc_info.value.device_name == MIC.name

    def test_unknown_id_raises_device_not_found(self):
        with pytest.raises(DeviceNotFound):
            resolve_render(42, [MIC, SPEAKERS])
