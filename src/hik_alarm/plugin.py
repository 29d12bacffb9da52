from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .alert_event import AlarmStatus
from .camera_store import CameraConfig, CameraStore
from .config import HikAlarmSettings
from .device_host import DeviceHost, InMemoryDeviceHost
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    """Answer to a host poll for one device."""
    found: bool
    value: float


class HikAlarmPlugin:
    """
    Ties the pieces together: device host, camera store and connection registry.

    The store is the source of truth for camera addresses/credentials, the host owns
    device ids and names, and the registry owns the running connections.
    """

    def __init__(
        self,
        cfg: Optional[HikAlarmSettings] = None,
        *,
        host: Optional[DeviceHost] = None,
        store: Optional[CameraStore] = None,
        registry: Optional[ConnectionRegistry] = None,
    ):
        self.cfg = cfg or HikAlarmSettings()
        self.host = host if host is not None else InMemoryDeviceHost()
        self.store = store if store is not None else CameraStore(self.cfg.cameras_file)
        self.registry = registry if registry is not None else ConnectionRegistry(self.host, self.cfg)

    def start(self) -> int:
        """
        Start a connection for every stored camera. Returns how many were started.
        """
        cameras = self.store.load_all()
        for device_id, camera in cameras.items():
            if not self.host.has_device(device_id):
                self.host.create_device(camera.name, device_id=device_id)

            logger.info("Camera: device_id=%s address=%s username=%s", device_id, camera.address, camera.username)
            self.registry.add_device(device_id, camera.address, camera.username, camera.password)

        logger.info("Started %d camera connection(s) from %s", len(cameras), self.store.path)
        return len(cameras)

    def create_camera(self, name: str, address: str, username: str, password: str) -> int:
        """Create the host device, persist its settings and start watching it."""
        device_id = self.host.create_device(name)
        self.store.save(device_id, CameraConfig(name=name, address=address, username=username, password=password))
        self.registry.add_device(device_id, address, username, password)
        return device_id

    def update_camera(self, device_id: int, address: str, username: str, password: str = "") -> bool:
        """
        Save new connection settings and restart the camera's connection.
        An empty password keeps the stored one.
        """
        if not self.host.has_device(device_id):
            return False

        current = self.store.get(device_id)
        if not password and current is not None:
            password = current.password

        name = self.host.device_name(device_id)
        self.store.save(device_id, CameraConfig(name=name, address=address, username=username, password=password))

        # Credentials are fixed for a connection's lifetime, so replace it
        self.registry.delete_device(device_id)
        self.registry.add_device(device_id, address, username, password)
        return True

    def delete_camera(self, device_id: int) -> bool:
        """Remove the host device, its stored settings and its connection."""
        deleted = self.host.delete_device(device_id)
        self.store.delete(device_id)
        self.registry.delete_device(device_id)
        return deleted

    def get_camera(self, device_id: int) -> Optional[CameraConfig]:
        return self.store.get(device_id)

    def poll_device(self, device_id: int) -> PollResult:
        status = self.registry.get_status(device_id)
        if status is None:
            return PollResult(found=False, value=0)
        return PollResult(found=True, value=float(status))

    def get_status(self, device_id: int) -> Optional[AlarmStatus]:
        return self.registry.get_status(device_id)

    def camera_names(self) -> dict[str, int]:
        return self.registry.list_names()

    def shutdown(self) -> None:
        logger.info("Shutting down camera connections")
        self.registry.shutdown_all()
