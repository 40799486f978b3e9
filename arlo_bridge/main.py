"""
Bridge entry point

Wires settings, logging, the HomeKit host, the directory client and the
platform together and runs until interrupted.
"""
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import ValidationError

from arlo_bridge.config.platform import load_platform_config
from arlo_bridge.core.config import Settings, settings as default_settings
from arlo_bridge.core.errors import BridgeError
from arlo_bridge.core.logging_config import APP_VERSION, setup_logging
from arlo_bridge.core.metrics import init_bridge_info, start_metrics_server
from arlo_bridge.services.directory import StaticDirectoryClient
from arlo_bridge.services.homekit_host import HomekitHost
from arlo_bridge.services.platform import ArloPlatform

logger = logging.getLogger(__name__)


def log_session_status(platform: ArloPlatform) -> None:
    """Periodic status line, one per poll interval."""
    status = platform.status()
    if status is None:
        return
    logger.info(
        f"Session status: {status.handler_count} active handlers, "
        f"{status.cached_count} cached accessories",
        extra={
            "session_id": status.session_id,
            "logged_in": status.logged_in,
            "processed_count": status.processed_count,
            "unseen_count": len(status.unseen_identities),
            "error": status.error,
        }
    )


def build_client(config: Settings) -> StaticDirectoryClient:
    if Path(config.DEVICES_FILE).exists():
        return StaticDirectoryClient.from_file(config.DEVICES_FILE)
    logger.warning(f"Device list {config.DEVICES_FILE} not found, no devices will be reported")
    return StaticDirectoryClient()


async def run(config: Optional[Settings] = None, stop_event: Optional[asyncio.Event] = None) -> int:
    """
    Run the bridge until `stop_event` is set (or SIGINT/SIGTERM).

    Returns:
        Process exit code
    """
    config = config or default_settings
    stop_event = stop_event or asyncio.Event()

    raw_config = load_platform_config(config.PLATFORM_CONFIG_FILE)
    host = HomekitHost(config)
    platform = ArloPlatform(raw_config, build_client(config), host)
    if platform.disabled:
        return 0

    if config.METRICS_PORT:
        start_metrics_server(config.METRICS_PORT)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows event loops
            pass

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        log_session_status,
        IntervalTrigger(seconds=platform.config.poll_interval_seconds),
        args=[platform],
        id="session_status",
        replace_existing=True,
    )

    try:
        platform.restore_cached()
        host.start()
        await platform.did_finish_launching()
        scheduler.start()
        await stop_event.wait()
    finally:
        if scheduler.running:
            scheduler.shutdown(wait=False)
        await platform.shutdown()
        host.stop()
        logger.info("Bridge stopped")
    return 0


def main() -> int:
    setup_logging()
    init_bridge_info(APP_VERSION)
    try:
        return asyncio.run(run())
    except (BridgeError, ValidationError) as e:
        logger.error(f"Bridge failed to start: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
