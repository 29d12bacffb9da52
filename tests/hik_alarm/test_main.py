import runpy
import sys
from types import SimpleNamespace

import pytest
import uvicorn

from hik_alarm.camera_store import CameraConfig, CameraStore
from hik_alarm.config import HikAlarmSettings
from hik_alarm.main import run


def test_settings_defaults():
    cfg = HikAlarmSettings()

    assert cfg.camera_port == 80
    assert cfg.alert_stream_path == "/Event/notification/alertStream"
    assert isinstance(cfg.stale_after_sec, float)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("STALE_AFTER_SEC", "5")
    monkeypatch.setenv("CAMERA_PORT", "8080")

    cfg = HikAlarmSettings()

    assert cfg.stale_after_sec == 5.0
    assert cfg.camera_port == 8080


def test_run_print_config_does_not_crash(capfd, fast_settings):
    code = run(argv=["--print-config"], cfg=fast_settings)
    assert code == 0

    out, _ = capfd.readouterr()
    assert "stale_after_sec" in out


def test_run_list_cameras(capfd, fast_settings):
    CameraStore(fast_settings.cameras_file).save(
        3, CameraConfig(name="Front door", address="10.0.0.3", username="admin", password="secret")
    )

    code = run(argv=["--list-cameras"], cfg=fast_settings)
    assert code == 0

    out, _ = capfd.readouterr()
    assert "3\tFront door\t10.0.0.3\tadmin" in out
    assert "secret" not in out


def test_run_http_serve_calls_uvicorn(monkeypatch, fast_settings):
    called = {}

    def fake_run(app, host, port, log_level):
        called["host"] = host
        called["port"] = port
        called["log_level"] = log_level
        return None

    monkeypatch.setattr(uvicorn, "run", fake_run)

    fast_settings.http_host = "127.0.0.1"
    fast_settings.http_port = 9999
    code = run(argv=["--http-serve"], cfg=fast_settings)

    assert code == 0
    assert called == {"host": "127.0.0.1", "port": 9999, "log_level": "info"}


def test_run_watch_stops_on_ctrl_c(monkeypatch, fast_settings):
    import hik_alarm.main as m

    shut_down = []

    def interrupt(_seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(m, "time", SimpleNamespace(sleep=interrupt))
    monkeypatch.setattr(m.HikAlarmPlugin, "shutdown", lambda self: shut_down.append(True))

    assert run(argv=["--watch"], cfg=fast_settings) == 0
    assert shut_down == [True]


def test_run_returns_1_on_unexpected_exception(monkeypatch):
    import hik_alarm.main as m

    monkeypatch.setattr(m, "build_parser", lambda: (_ for _ in ()).throw(RuntimeError("boom")))
    code = m.run(argv=[])
    assert code == 1


def test_module_entrypoint_exits_cleanly(monkeypatch):
    """
    Covers:
    - the default "Nothing to do..." branch in run()
    - the __main__ guard
    """
    monkeypatch.setattr(sys, "argv", ["hik_alarm"])

    # Ensure runpy executes a fresh copy (avoid RuntimeWarning)
    sys.modules.pop("hik_alarm.main", None)

    with pytest.raises(SystemExit) as exc:
        runpy.run_module("hik_alarm.main", run_name="__main__")

    assert exc.value.code == 0
