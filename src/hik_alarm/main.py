from __future__ import annotations

import argparse
import logging
import time

from .config import HikAlarmSettings
from .logging import configure_logging
from .plugin import HikAlarmPlugin

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HikVision Alarm Check - camera motion status")
    parser.add_argument("--print-config", action="store_true", help="Print resolved configuration and exit.")
    parser.add_argument("--list-cameras", action="store_true", help="Print the configured cameras and exit.")
    parser.add_argument("--http-serve", action="store_true", help="Start camera connections and the HTTP API.")
    parser.add_argument("--watch", action="store_true", help="Start camera connections and run until Ctrl+C.")
    return parser


def _watch(plugin: HikAlarmPlugin) -> None:
    plugin.start()
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        plugin.shutdown()


def run(argv: list[str] | None = None, cfg: HikAlarmSettings | None = None) -> int:
    """
    Alarm checker entrypoint.
    """
    try:
        args = build_parser().parse_args(argv)

        # Load settings from environment / .env
        cfg = cfg or HikAlarmSettings()

        # Setup logging using configured level
        configure_logging(cfg.log_level)

        logger.info("Hik Alarm Check starting")
        logger.info(
            "Resolved config: cameras_file=%s camera_port=%s stale_after=%ss",
            cfg.cameras_file, cfg.camera_port, cfg.stale_after_sec
        )

        if args.print_config:
            print(cfg.model_dump())
            return 0

        plugin = HikAlarmPlugin(cfg)

        if args.list_cameras:
            for device_id, camera in sorted(plugin.store.load_all().items()):
                print(f"{device_id}\t{camera.name}\t{camera.address}\t{camera.username}")
            return 0

        if args.http_serve:
            import uvicorn
            from .api import create_app

            app = create_app(plugin)
            plugin.start()
            try:
                logger.info("Starting HTTP API at http://%s:%s", cfg.http_host, cfg.http_port)
                uvicorn.run(
                    app,
                    host=cfg.http_host,
                    port=cfg.http_port,
                    log_level=cfg.log_level.lower(),
                )
            finally:
                plugin.shutdown()
            return 0

        if args.watch:
            _watch(plugin)
            return 0

        logger.info("Nothing to do. Use --watch, --http-serve, --list-cameras or --print-config.")
        return 0

    except Exception:
        # Log unexpected exceptions so the service is diagnosable.
        logger.exception("Hik Alarm Check crashed due to an unexpected error")
        if cfg is not None and (cfg.debug or cfg.log_level.upper() == "DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
