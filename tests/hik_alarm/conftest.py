import pytest

from hik_alarm.config import HikAlarmSettings

from .helpers import RecordingHost


@pytest.fixture
def fast_settings(tmp_path):
    return HikAlarmSettings(
        connect_timeout_sec=0.5,
        read_timeout_sec=0.02,
        stale_after_sec=0.2,
        backoff_sec=0.01,
        shutdown_grace_sec=0.3,
        shutdown_poll_sec=0.01,
        cameras_file=str(tmp_path / "HikAlarmCheck.ini"),
    )


@pytest.fixture
def host():
    return RecordingHost()
