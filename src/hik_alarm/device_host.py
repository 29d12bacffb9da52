from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Protocol

from .alert_event import AlarmStatus

logger = logging.getLogger(__name__)


class DeviceHost(Protocol):
    """What the alarm checker needs from the home-automation side."""

    def device_name(self, device_id: int) -> str: ...

    def set_device_value(self, device_id: int, value: AlarmStatus) -> None: ...

    def create_device(self, name: str, device_id: Optional[int] = None) -> int: ...

    def delete_device(self, device_id: int) -> bool: ...

    def has_device(self, device_id: int) -> bool: ...


class InMemoryDeviceHost:
    """
    Minimal device host: hands out device ids, remembers names and the last value written.

    set_device_value() is called from camera threads, so everything is behind a lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: dict[int, str] = {}
        self._values: dict[int, AlarmStatus] = {}
        self._last_change: dict[int, datetime] = {}
        self._next_id = 1

    def create_device(self, name: str, device_id: Optional[int] = None) -> int:
        with self._lock:
            if device_id is None:
                device_id = self._next_id
            self._next_id = max(self._next_id, device_id + 1)

            self._names[device_id] = name
            self._values[device_id] = AlarmStatus.UNKNOWN
            self._last_change[device_id] = datetime.now(timezone.utc)

        logger.info("Device created: device_id=%s name=%s", device_id, name)
        return device_id

    def delete_device(self, device_id: int) -> bool:
        with self._lock:
            if device_id not in self._names:
                return False
            del self._names[device_id]
            self._values.pop(device_id, None)
            self._last_change.pop(device_id, None)

        logger.info("Device deleted: device_id=%s", device_id)
        return True

    def has_device(self, device_id: int) -> bool:
        with self._lock:
            return device_id in self._names

    def device_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._names)

    def device_name(self, device_id: int) -> str:
        with self._lock:
            return self._names.get(device_id, f"RefId_{device_id}")

    def set_device_value(self, device_id: int, value: AlarmStatus) -> None:
        with self._lock:
            if device_id not in self._names:
                logger.debug("Ignoring value for unknown device_id=%s", device_id)
                return
            self._values[device_id] = AlarmStatus(value)
            self._last_change[device_id] = datetime.now(timezone.utc)

    def device_value(self, device_id: int) -> Optional[AlarmStatus]:
        with self._lock:
            return self._values.get(device_id)

    def last_change(self, device_id: int) -> Optional[datetime]:
        with self._lock:
            return self._last_change.get(device_id)
