from __future__ import annotations

import configparser
import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SECTION_PREFIX = "Camera"


class CameraConfig(BaseModel):
    """Connection details for one camera, as stored in the INI file."""

    name: str = "HikVision Camera"
    address: str = Field(..., min_length=1)
    username: str = ""
    password: str = ""


class CameraStore:
    """
    INI-file camera configuration, one section per device:

        [Camera12]
        Name = Front door
        IpAddress = 192.168.1.64
        Username = admin
        Password = secret

    The file is re-read on every call and rewritten on every change.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load_all(self) -> dict[int, CameraConfig]:
        with self._lock:
            parser = self._read()

        cameras: dict[int, CameraConfig] = {}
        for section in parser.sections():
            device_id = _device_id_from_section(section)
            if device_id is None:
                logger.warning("Skipping unexpected section [%s] in %s", section, self.path)
                continue

            config = _config_from_section(parser[section])
            if config is None:
                logger.warning("Skipping [%s] in %s: no IpAddress", section, self.path)
                continue
            cameras[device_id] = config

        return cameras

    def get(self, device_id: int) -> Optional[CameraConfig]:
        with self._lock:
            parser = self._read()

        section = f"{SECTION_PREFIX}{device_id}"
        if not parser.has_section(section):
            return None
        return _config_from_section(parser[section])

    def save(self, device_id: int, config: CameraConfig) -> None:
        with self._lock:
            parser = self._read()
            parser[f"{SECTION_PREFIX}{device_id}"] = {
                "Name": config.name,
                "IpAddress": config.address,
                "Username": config.username,
                "Password": config.password,
            }
            self._write(parser)

    def delete(self, device_id: int) -> bool:
        with self._lock:
            parser = self._read()
            removed = parser.remove_section(f"{SECTION_PREFIX}{device_id}")
            if removed:
                self._write(parser)
        return removed

    def _read(self) -> configparser.ConfigParser:
        parser = _new_parser()
        if self.path.exists():
            parser.read(self.path, encoding="utf-8")
        return parser

    def _write(self, parser: configparser.ConfigParser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            parser.write(fh)


def _new_parser() -> configparser.ConfigParser:
    # No interpolation: passwords may contain '%'. Keep key case as written.
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str
    return parser


def _device_id_from_section(section: str) -> Optional[int]:
    if not section.startswith(SECTION_PREFIX):
        return None
    try:
        return int(section[len(SECTION_PREFIX):])
    except ValueError:
        return None


def _config_from_section(section: configparser.SectionProxy) -> Optional[CameraConfig]:
    address = section.get("IpAddress", "").strip()
    if not address:
        return None
    return CameraConfig(
        name=section.get("Name", "") or section.name,
        address=address,
        username=section.get("Username", ""),
        password=section.get("Password", ""),
    )
