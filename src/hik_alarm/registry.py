from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .alert_event import AlarmStatus
from .config import HikAlarmSettings
from .connection import CameraConnection
from .device_host import DeviceHost

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[..., CameraConnection]


class ConnectionRegistry:
    """
    The set of live camera connections, keyed by device id.

    Structural changes (add/delete/shutdown) come from outside the camera threads
    and run one at a time. Reads (status/names) only take the dict lock, so they
    are not held up while a connection spends its grace period shutting down.
    """

    def __init__(
        self,
        host: DeviceHost,
        settings: Optional[HikAlarmSettings] = None,
        connection_factory: ConnectionFactory = CameraConnection,
    ):
        self._host = host
        self._settings = settings or HikAlarmSettings()
        self._connection_factory = connection_factory

        # _mutation_lock serializes add/delete/shutdown end to end (including the
        # slow shutdown of a replaced connection); _lock guards the dict for readers.
        self._mutation_lock = threading.Lock()
        self._lock = threading.Lock()
        self._connections: dict[int, CameraConnection] = {}

    def add_device(self, device_id: int, address: str, username: str, password: str) -> CameraConnection:
        """
        Create and start a connection for a camera. Returns immediately; connection
        problems show up in the log and as an UNKNOWN status, never here.
        """
        connection = self._connection_factory(
            device_id,
            address,
            username,
            password,
            on_status=self._host.set_device_value,
            settings=self._settings,
        )

        with self._mutation_lock:
            with self._lock:
                previous = self._connections.pop(device_id, None)

            if previous is not None:
                logger.info("Replacing connection for device_id=%s", device_id)
                previous.shutdown()

            connection.start()
            with self._lock:
                self._connections[device_id] = connection

        logger.info("Camera added: device_id=%s address=%s", device_id, address)
        return connection

    def delete_device(self, device_id: int) -> bool:
        """Stop and forget one connection. Unknown ids are ignored."""
        with self._mutation_lock:
            with self._lock:
                connection = self._connections.pop(device_id, None)

            if connection is None:
                return False

            connection.shutdown()
        logger.info("Camera removed: device_id=%s address=%s", device_id, connection.address)
        return True

    def shutdown_all(self) -> None:
        """Stop every connection and clear the registry."""
        with self._mutation_lock:
            with self._lock:
                connections = list(self._connections.values())
                self._connections.clear()

            # Signal all first so the grace periods overlap
            for connection in connections:
                connection.request_stop()

            forced = 0
            for connection in connections:
                if not connection.shutdown():
                    forced += 1

        logger.info("All camera connections stopped (%d total, %d forced)", len(connections), forced)

    def get_status(self, device_id: int) -> Optional[AlarmStatus]:
        """Last decoded status for a device, or None if there is no such connection."""
        with self._lock:
            connection = self._connections.get(device_id)
        if connection is None:
            return None
        return connection.status

    def list_names(self) -> dict[str, int]:
        """Snapshot of display name -> device id for every connection."""
        with self._lock:
            device_ids = list(self._connections)
        return {self._host.device_name(device_id): device_id for device_id in device_ids}

    def get(self, device_id: int) -> Optional[CameraConnection]:
        with self._lock:
            return self._connections.get(device_id)

    def device_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._connections)

    def __contains__(self, device_id: object) -> bool:
        with self._lock:
            return device_id in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
