import socket
import threading
import time

from hik_alarm.alert_event import AlarmStatus
from hik_alarm.device_host import InMemoryDeviceHost


def alert(event_type: str, event_state: str) -> bytes:
    """One alert-stream fragment the way the camera sends it (multipart part + namespaced XML)."""
    return (
        "--boundary\r\n"
        'Content-Type: application/xml; charset="UTF-8"\r\n'
        "\r\n"
        '<EventNotificationAlert version="2.0" xmlns="http://www.hikvision.com/ver20/XMLSchema">\n'
        "<ipAddress>192.168.1.64</ipAddress>\n"
        "<channelID>1</channelID>\n"
        f"<eventType>{event_type}</eventType>\n"
        f"<eventState>{event_state}</eventState>\n"
        "</EventNotificationAlert>\n"
    ).encode("utf-8")


MOTION = alert("VMD", "active")
NO_MOTION = alert("videoloss", "inactive")


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class RecordingHost(InMemoryDeviceHost):
    """InMemoryDeviceHost that also remembers every value written, in order."""

    def __init__(self):
        super().__init__()
        self.calls: list[tuple[int, AlarmStatus]] = []

    def set_device_value(self, device_id, value):
        self.calls.append((device_id, value))
        super().set_device_value(device_id, value)


class FakeSocket:
    """
    Stand-in for a connected camera socket.

    recv() hands out the queued chunks, then behaves like a silent peer
    (sleep for the socket timeout, raise socket.timeout). With block=True it
    instead blocks until the socket is shut down/closed, ignoring the timeout.
    ``after_close`` is data the blocked read returns once it is woken by the close,
    the way a kernel buffer can still hand back bytes that were already in flight.
    """

    def __init__(self, chunks=(), block: bool = False, after_close: bytes = None):
        self.chunks = list(chunks)
        self.block = block
        self.after_close = after_close
        self.sent = bytearray()
        self.timeout = None
        self.closed = threading.Event()

    def settimeout(self, value):
        self.timeout = value

    def sendall(self, data):
        self.sent.extend(data)

    def recv(self, size):
        if self.closed.is_set():
            raise OSError("socket is closed")
        if self.chunks:
            return self.chunks.pop(0)
        if self.block:
            self.closed.wait()
            if self.after_close is not None:
                data, self.after_close = self.after_close, None
                return data
            raise OSError("socket is closed")
        time.sleep(self.timeout or 0.01)
        raise socket.timeout("timed out")

    def shutdown(self, how):
        self.closed.set()

    def close(self):
        self.closed.set()


class SocketFactory:
    """Hands out prepared FakeSockets in order; records every endpoint asked for."""

    def __init__(self, *sockets, fallback=None):
        self.sockets = list(sockets)
        self.fallback = fallback or (lambda: FakeSocket())
        self.endpoints = []
        self.created = []

    def __call__(self, endpoint, timeout):
        self.endpoints.append(endpoint)
        sock = self.sockets.pop(0) if self.sockets else self.fallback()
        self.created.append(sock)
        return sock


class StubConnection:
    """Thread-free connection double for registry/plugin/API tests."""

    def __init__(self, device_id, address, username, password, *, on_status, settings):
        self.device_id = device_id
        self.address = address
        self.username = username
        self.password = password
        self.on_status = on_status
        self.settings = settings
        self.status = AlarmStatus.UNKNOWN
        self.started = False
        self.stop_requested = False
        self.stopped = False

    def start(self):
        self.started = True

    def request_stop(self):
        self.stop_requested = True

    def shutdown(self):
        self.stop_requested = True
        self.stopped = True
        return True


