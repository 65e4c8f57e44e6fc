from tonebridge.backend.base import AudioBackend, AudioStream, ErrorCallback
from tonebridge.core.errors import BackendUnavailable, StreamRuntimeError
from tonebridge.core.models import Device, StreamConfiguration
from tonebridge.utils.logger import logger
from typing import List, Optional
import sounddevice as sd
import threading
import queue

# Blocks the render side may buffer before the oldest one is dropped
RENDER_QUEUE_BLOCKS = 16

class SoundDeviceStream(AudioStream):
    """Common lifecycle for PortAudio raw streams"""

    direction = "stream"

    def __init__(self, device_id: int, config: StreamConfiguration, close_on_error: bool = True):
        self.device_id = device_id
        self.config = config
        self.close_on_error = close_on_error
        self._error_handlers: List[ErrorCallback] = []
        self._error: Optional[Exception] = None
        self._stopping = False
        self._closed = False
        self._lock = threading.Lock()
        self._stream = self._create_stream()

    def _create_stream(self):
        raise NotImplementedError

    def _stream_kwargs(self) -> dict:
        return {
            'device': self.device_id,
            'samplerate': self.config.sample_rate,
            'channels': self.config.channel_count,
            'dtype': self.config.sample_format.value,
            'blocksize': self.config.frames_per_buffer,
            'callback': self._callback,
            'finished_callback': self._on_finished
        }

    def _callback(self, *args):
        raise NotImplementedError

    def _fail(self, exc: Exception):
        """Record a callback failure and abort the stream"""
        self._error = StreamRuntimeError(
            f"{self.direction.capitalize()} stream on device {self.device_id} failed: {exc}",
            device_id=self.device_id
        )
        raise sd.CallbackAbort

    def _on_finished(self):
        # Runs on the PortAudio thread; handlers are dispatched elsewhere so they
        # may take locks held by a thread currently waiting in stop().
        with self._lock:
            if self._stopping or self._closed:
                return
            self._stopping = True
        error = self._error or StreamRuntimeError(
            f"{self.direction.capitalize()} stream on device {self.device_id} stopped unexpectedly",
            device_id=self.device_id
        )
        threading.Thread(
            target=self._dispatch_error,
            args=(error,),
            name=f"tonebridge-{self.direction}-error-{self.device_id}",
            daemon=True
        ).start()

    def _dispatch_error(self, error: Exception):
        if self.close_on_error:
            try:
                self.close()
            except Exception as e:
                logger.warning(f"Error closing failed {self.direction} stream: {e}")
        for handler in list(self._error_handlers):
            try:
                handler(error)
            except Exception as e:
                logger.error(f"{self.direction.capitalize()} stream error handler failed: {e}")

    def on_error(self, callback: ErrorCallback):
        self._error_handlers.append(callback)

    def start(self):
        self._stream.start()
        logger.debug(f"Started {self.direction} stream on device {self.device_id}")

    def stop(self):
        with self._lock:
            if self._closed:
                return
            self._stopping = True
        self._stream.stop()

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._stopping = True
        self._stream.close()
        logger.debug(f"Closed {self.direction} stream on device {self.device_id}")

class CaptureStream(SoundDeviceStream):
    direction = "capture"

    def __init__(self, device_id: int, config: StreamConfiguration, close_on_error: bool = True):
        self._sink: Optional["RenderStream"] = None
        super().__init__(device_id, config, close_on_error)

    def _create_stream(self):
        return sd.RawInputStream(**self._stream_kwargs())

    def _callback(self, indata, frames, time_info, status):
        try:
            if status:
                logger.debug(f"Capture status on device {self.device_id}: {status}")
            sink = self._sink
            if sink is not None:
                sink.feed(bytes(indata))
        except Exception as e:
            self._fail(e)

    def pipe_to(self, other: AudioStream):
        if not isinstance(other, RenderStream):
            raise TypeError("Capture streams can only be piped into render streams")
        self._sink = other

    def unpipe(self):
        self._sink = None

class RenderStream(SoundDeviceStream):
    direction = "render"

    def __init__(self, device_id: int, config: StreamConfiguration, close_on_error: bool = True):
        self._queue: "queue.Queue[bytes]" = queue.Queue(maxsize=RENDER_QUEUE_BLOCKS)
        self._pending = b""
        super().__init__(device_id, config, close_on_error)

    def _create_stream(self):
        return sd.RawOutputStream(**self._stream_kwargs())

    def feed(self, data: bytes):
        """Queue a captured block, dropping the oldest one when full"""
        try:
            self._queue.put_nowait(data)
        except queue.Full:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                pass
            try:
                self._queue.put_nowait(data)
            except queue.Full:
                pass

    def _callback(self, outdata, frames, time_info, status):
        try:
            if status:
                logger.debug(f"Render status on device {self.device_id}: {status}")
            needed = len(outdata)
            buffer = bytearray(self._pending)
            while len(buffer) < needed:
                try:
                    buffer.extend(self._queue.get_nowait())
                except queue.Empty:
                    break
            if len(buffer) < needed:
                # underrun: pad with silence
                buffer.extend(bytes(needed - len(buffer)))
            outdata[:] = bytes(buffer[:needed])
            self._pending = bytes(buffer[needed:])
        except Exception as e:
            self._fail(e)

    def pipe_to(self, other: AudioStream):
        raise TypeError("Render streams cannot be piped")

    def unpipe(self):
        pass

class SoundDeviceBackend(AudioBackend):
    """Audio backend on top of PortAudio via sounddevice"""

    def enumerate(self) -> List[Device]:
        try:
            devices = sd.query_devices()
            hostapis = sd.query_hostapis()
        except Exception as e:
            logger.error(f"Error querying audio devices: {e}")
            raise BackendUnavailable(f"Failed to get audio devices: {e}") from e

        result = []
        for idx, device in enumerate(devices):
            hostapi_idx = device.get('hostapi', -1)
            host_api = hostapis[hostapi_idx]['name'] if 0 <= hostapi_idx < len(hostapis) else ""
            result.append(Device(
                id=device.get('index', idx),
                name=device['name'],
                host_api=host_api,
                max_input_channels=device['max_input_channels'],
                max_output_channels=device['max_output_channels'],
                default_sample_rate=device.get('default_samplerate')
            ))
        return result

    def open_capture(self, device_id: int, config: StreamConfiguration,
                     close_on_error: bool = True) -> CaptureStream:
        return CaptureStream(device_id, config, close_on_error)

    def open_render(self, device_id: int, config: StreamConfiguration,
                    close_on_error: bool = True) -> RenderStream:
        return RenderStream(device_id, config, close_on_error)
