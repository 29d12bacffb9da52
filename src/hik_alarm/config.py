from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class HikAlarmSettings(BaseSettings):
    """
    Configuration for the HikVision alarm checker.
    """

    # Tell pydantic-settings to load environment variables from .env if present.
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # ignore unknown env vars
    )

    # --- Camera alert stream ---
    camera_port: int = 80
    alert_stream_path: str = "/Event/notification/alertStream"

    # --- Connection timing (seconds) ---
    connect_timeout_sec: float = 3.0
    read_timeout_sec: float = 0.5  # bounded wait for data on each receive round
    stale_after_sec: float = 2.0  # cameras push ~3 messages/s; silence this long means a dead stream
    backoff_sec: float = 0.1  # pause before reconnecting

    # --- Shutdown ---
    shutdown_grace_sec: float = 1.0
    shutdown_poll_sec: float = 0.05

    # --- Buffering ---
    recv_bytes: int = 2048
    max_buffer_bytes: int = 1_000_000  # safety limit against garbage input

    # --- Camera configuration store (INI file) ---
    cameras_file: str = "HikAlarmCheck.ini"

    # --- Logging ---
    log_level: str = "INFO"
    debug: bool = False

    # --- HTTP API ---
    http_host: str = "127.0.0.1"
    http_port: int = 8128
