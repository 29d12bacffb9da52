from __future__ import annotations

import logging
import socket
import threading
import time
from enum import Enum
from typing import Callable, Optional

from .alert_event import AlarmStatus
from .alert_parser import parse_alert_xml
from .config import HikAlarmSettings
from .framing import build_alert_stream_request, extract_alert_messages
from .logging import CameraLogAdapter

logger = logging.getLogger(__name__)

# (device_id, status) -> None; called from the camera thread.
StatusCallback = Callable[[int, AlarmStatus], None]

# ((host, port), timeout) -> connected socket. Same shape as socket.create_connection.
SocketFactory = Callable[[tuple, float], socket.socket]


class ConnectionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SENDING = "sending"
    RECEIVING = "receiving"
    BACKOFF = "backoff"


class CameraConnection:
    """
    One camera's alert-stream subscription, run on its own thread.

    The thread connects, sends the alertStream request, then reads and decodes the
    XML pushed by the camera until told to stop. Any connect failure, socket fault or
    stalled stream closes the socket and starts over after a short pause, forever.

    Status changes are pushed to ``on_status`` only when the decoded value differs
    from the current one.

    Socket and buffer belong to the camera thread. The only exception is the forced
    path of shutdown(), which closes the socket from the caller's thread to wake a
    blocked recv().
    """

    def __init__(
        self,
        device_id: int,
        address: str,
        username: str,
        password: str,
        *,
        on_status: StatusCallback,
        settings: Optional[HikAlarmSettings] = None,
        socket_factory: Optional[SocketFactory] = None,
    ):
        self._device_id = device_id
        self._address = address
        self._username = username
        self._password = password

        self.settings = settings or HikAlarmSettings()
        self._on_status = on_status
        self._socket_factory = socket_factory or socket.create_connection
        self.log = CameraLogAdapter(logger, {"address": address})

        self._sock: Optional[socket.socket] = None
        self._buffer = bytearray()
        self._state = ConnectionState.IDLE
        self._status = AlarmStatus.UNKNOWN
        self._last_message = 0.0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._detached = False

    @property
    def device_id(self) -> int:
        return self._device_id

    @property
    def address(self) -> str:
        return self._address

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    @property
    def status(self) -> AlarmStatus:
        """Last decoded alarm status. Never blocks."""
        return self._status

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def buffer(self) -> bytes:
        """Bytes received but not yet framed into a complete message."""
        return bytes(self._buffer)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the camera thread."""
        if self.is_alive:
            self.log.warning("Camera loop already running")
            return

        self._stop.clear()
        self._detached = False
        self._thread = threading.Thread(
            target=self._run,
            name=f"hik-alarm-{self._device_id}",
            daemon=True,
        )
        self._thread.start()

    def request_stop(self) -> None:
        """Set the stop flag without waiting."""
        self._stop.set()

    def shutdown(self) -> bool:
        """
        Stop the camera thread.

        The thread gets ``shutdown_grace_sec`` to notice the stop flag and exit on its own.
        If it is still running after that (e.g. wedged in a blocking call), the socket is
        shut down and closed from here and the daemon thread is left to finish by itself.

        Returns True if the thread exited on its own, False if it had to be forced.
        """
        self.request_stop()

        thread = self._thread
        if thread is None:
            return True

        deadline = time.monotonic() + self.settings.shutdown_grace_sec
        while thread.is_alive() and time.monotonic() < deadline:
            thread.join(self.settings.shutdown_poll_sec)

        if not thread.is_alive():
            return True

        self.log.warning(
            "Camera loop did not stop within %.1fs; forcing socket closed",
            self.settings.shutdown_grace_sec,
        )
        self._detached = True
        self._force_close()
        return False

    def feed(self, data: bytes) -> list[AlarmStatus]:
        """Append received bytes to the buffer and decode every complete message in it."""
        self._buffer.extend(data)
        decoded = self.process_buffer()

        # Safety: prevent unbounded memory usage if garbage arrives
        if len(self._buffer) > self.settings.max_buffer_bytes:
            self.log.warning(
                "Buffer exceeded %d bytes without a complete message; clearing buffer to recover",
                self.settings.max_buffer_bytes,
            )
            self._buffer.clear()

        return decoded

    def process_buffer(self) -> list[AlarmStatus]:
        """
        Frame and decode as many messages as the buffer holds.

        Returns the status decoded from each good message, in order. A message that
        fails to decode sets the status to UNKNOWN and is skipped.
        """
        decoded: list[AlarmStatus] = []

        for message in extract_alert_messages(self._buffer):
            try:
                event = parse_alert_xml(message)
            except Exception as e:
                # Don't drop the stream on one bad message
                self.log.error("XML processing error: %s", e)
                self._set_status(AlarmStatus.UNKNOWN)
                continue

            status = event.status
            if status != self._status:
                self.log.info(
                    "Status %s -> %s (eventType=%s eventState=%s)",
                    self._status.label, status.label, event.event_type, event.event_state,
                )
            self._set_status(status)
            self._last_message = time.monotonic()
            decoded.append(status)

        return decoded

    def _run(self) -> None:
        self.log.info("Camera loop started (device_id=%s)", self._device_id)

        # Status is unknown until the stream says otherwise
        self._set_status(AlarmStatus.UNKNOWN, force=True)

        try:
            while not self._stop.is_set():
                try:
                    self._step()
                except OSError as e:
                    if self._stop.is_set():
                        break
                    self.log.warning("Socket error: %s", e)
                    self._close_socket()
                    self._set_status(AlarmStatus.UNKNOWN)
                    self._state = ConnectionState.IDLE
                    self._stop.wait(self.settings.backoff_sec)
        except Exception:
            self.log.exception("Unexpected error in camera loop")
        finally:
            self._close_socket()
            if not self._detached:
                self._set_status(AlarmStatus.UNKNOWN)
            self.log.info("Camera loop stopped")

    def _step(self) -> None:
        state = self._state
        if state is ConnectionState.IDLE:
            self._begin()
        elif state is ConnectionState.CONNECTING:
            self._connect()
        elif state is ConnectionState.SENDING:
            self._send_request()
        elif state is ConnectionState.RECEIVING:
            self._receive()
        else:
            self._backoff()

    def _begin(self) -> None:
        self._close_socket()
        self._buffer.clear()
        self._state = ConnectionState.CONNECTING

    def _connect(self) -> None:
        endpoint = (self._address, self.settings.camera_port)
        try:
            sock = self._socket_factory(endpoint, self.settings.connect_timeout_sec)
        except OSError as e:
            self.log.warning("Connection failed, retry: %s", e)
            self._state = ConnectionState.BACKOFF
            return

        sock.settimeout(self.settings.read_timeout_sec)
        self._sock = sock
        self._state = ConnectionState.SENDING

    def _send_request(self) -> None:
        request = build_alert_stream_request(
            self._address, self._username, self._password, self.settings.alert_stream_path
        )
        self._sock.sendall(request)
        self.log.info("Connected to camera")

        # Start the staleness timer before the first message arrives
        self._last_message = time.monotonic()
        self._state = ConnectionState.RECEIVING

    def _receive(self) -> None:
        try:
            data = self._sock.recv(self.settings.recv_bytes)
        except socket.timeout:
            pass
        else:
            if not data:
                raise ConnectionResetError("camera closed the connection")
            self.feed(data)

        idle = time.monotonic() - self._last_message
        if idle > self.settings.stale_after_sec:
            self.log.warning("%.0f ms since last message. Attempt to reconnect.", idle * 1000)
            self._close_socket()
            self._set_status(AlarmStatus.UNKNOWN)
            self._state = ConnectionState.BACKOFF

    def _backoff(self) -> None:
        self._close_socket()
        self._stop.wait(self.settings.backoff_sec)
        self._state = ConnectionState.IDLE

    def _set_status(self, status: AlarmStatus, *, force: bool = False) -> None:
        if status == self._status and not force:
            return

        self._status = status
        if self._detached:
            # A forced shutdown handed this device back; a replacement may own it now
            return
        try:
            self._on_status(self._device_id, status)
        except Exception:
            self.log.exception("Device host rejected status update")

    def _close_socket(self) -> None:
        sock, self._sock = self._sock, None
        if sock is None:
            return

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # peer already gone
        sock.close()
        self.log.debug("Socket closed")

    def _force_close(self) -> None:
        # Called from the shutdown() caller's thread; leave self._sock for the camera thread.
        sock = self._sock
        if sock is None:
            return

        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
