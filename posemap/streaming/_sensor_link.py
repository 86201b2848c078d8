"""The control side of the connection to a single sensor."""
from enum import Enum

from typing_extensions import Protocol, runtime_checkable


class ControlToken(str, Enum):
    """The control tokens understood by the sensors."""

    START = "start"
    CALIBRATE = "calibrate"
    STOP = "stop"


@runtime_checkable
class SensorLink(Protocol):
    """The minimal interface a transport needs to provide for each connected sensor.

    Transport specific details (connecting, reconnecting, framing) are not part of posemap.
    Incoming messages are handed to :meth:`~posemap.session.CaptureSession.deliver_message` by the transport.

    Any error raised by `send` is treated as a failure of this single link (e.g. a closed connection).
    """

    def send(self, token: str) -> None:
        """Send a control token to the sensor."""
