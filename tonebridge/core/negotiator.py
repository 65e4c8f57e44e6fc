from .models import Device, MAX_CHANNELS, SampleFormat, StreamConfiguration
from typing import List

class ConfigurationNegotiator:
    """Derives one stream configuration both ends of a route can open"""

    def __init__(self, channel_count: int = 2, sample_rate: int = 48000,
                 sample_format: SampleFormat = SampleFormat.INT24,
                 fallback_format: SampleFormat = SampleFormat.INT16,
                 frames_per_buffer: int = 512):
        self.channel_count = channel_count
        self.sample_rate = sample_rate
        self.sample_format = SampleFormat.parse(sample_format)
        self.fallback_format = SampleFormat.parse(fallback_format)
        self.frames_per_buffer = frames_per_buffer

    def negotiate_channels(self, capture: Device, render: Device) -> int:
        channels = min(capture.max_input_channels, render.max_output_channels,
                       self.channel_count, MAX_CHANNELS)
        return max(1, channels)

    def negotiate_sample_rate(self, capture: Device, render: Device) -> int:
        """Shared rate; the smaller one when the devices disagree (no resampling)"""
        rates = [r for r in (capture.reported_sample_rate, render.reported_sample_rate) if r]
        if not rates:
            return self.sample_rate
        return min(rates)

    def negotiate(self, capture: Device, render: Device) -> StreamConfiguration:
        return StreamConfiguration(
            channel_count=self.negotiate_channels(capture, render),
            sample_rate=self.negotiate_sample_rate(capture, render),
            sample_format=self.sample_format,
            frames_per_buffer=self.frames_per_buffer
        )

    def candidates(self, config: StreamConfiguration) -> List[StreamConfiguration]:
        """Configurations to try in order: the preferred format, then the fallback"""
        ordered = [config]
        if self.fallback_format != config.sample_format:
            ordered.append(config.with_format(self.fallback_format))
        return ordered
