from abc import ABC, abstractmethod
from typing import Callable, List
from tonebridge.core.models import Device, StreamConfiguration

ErrorCallback = Callable[[Exception], None]

class AudioStream(ABC):
    """An open capture or render stream owned by a route"""

    @abstractmethod
    def pipe_to(self, other: "AudioStream"):
        """Send this stream's captured audio into another stream"""

    @abstractmethod
    def unpipe(self):
        """Disconnect any piped destination"""

    @abstractmethod
    def start(self):
        pass

    @abstractmethod
    def stop(self):
        pass

    @abstractmethod
    def close(self):
        pass

    @abstractmethod
    def on_error(self, callback: ErrorCallback):
        """Register a callback fired when the stream fails after start"""

class AudioBackend(ABC):
    """Audio I/O backend the routing manager drives"""

    @abstractmethod
    def enumerate(self) -> List[Device]:
        """Return every device the host exposes (raises BackendUnavailable)"""

    @abstractmethod
    def open_capture(self, device_id: int, config: StreamConfiguration,
                     close_on_error: bool = True) -> AudioStream:
        pass

    @abstractmethod
    def open_render(self, device_id: int, config: StreamConfiguration,
                    close_on_error: bool = True) -> AudioStream:
        pass
