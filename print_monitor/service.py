"""
Process host: directory bootstrap, wiring, and lifetime of the monitor.
"""
import logging
import signal
import threading
from pathlib import Path

from print_monitor import env
from print_monitor.audit import audit
from print_monitor.errors import ConfigurationError
from print_monitor.log import configure_logging
from print_monitor.pipeline import JobPipeline
from print_monitor.printers import get_printer_provider
from print_monitor.watcher import DirectoryWatcher

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG = 2


def bootstrap_directories(watched, archive) -> tuple[Path, Path]:
    watched = Path(watched)
    archive = Path(archive)

    if not watched.is_dir():
        raise ConfigurationError(f"Watched directory not found at '{watched}'")

    if not archive.is_dir():
        logger.info("Creating processed directory at '%s'", archive)
        archive.mkdir(parents=True, exist_ok=True)

    return watched, archive


def build_pipeline(archive: Path) -> JobPipeline:
    provider = get_printer_provider(env.PRINTER_BACKEND, doc_name=env.DOC_NAME,
                                    timeout=env.PRINT_TIMEOUT_SECONDS)
    return JobPipeline(
        printer=env.PRINTER_NAME,
        archive_dir=archive,
        provider=provider,
        settle_seconds=env.SETTLE_SECONDS,
        settle_mode=env.SETTLE_MODE,
    )


def run(stop_event: threading.Event | None = None) -> int:
    configure_logging(env.LOG_LEVEL, env.LOG_FILE)
    logger.info("Print Monitor Service starting...")

    try:
        if env.CONFIG_ERRORS:
            raise ConfigurationError("Invalid configuration: " + "; ".join(env.CONFIG_ERRORS))
        watched, archive = bootstrap_directories(env.WATCHED_PATH, env.PROCESSED_PATH)
        pipeline = build_pipeline(archive)
    except (ConfigurationError, ValueError) as e:
        logger.error("%s", e)
        return EXIT_CONFIG

    stop_event = stop_event or threading.Event()

    def _on_signal(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        stop_event.set()

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGINT, _on_signal)
        signal.signal(signal.SIGTERM, _on_signal)

    watcher = DirectoryWatcher(watched, pipeline, workers=env.WATCH_WORKERS)
    watcher.start()
    audit("agent_startup", {"printer": env.PRINTER_NAME, "watched": str(watched)})

    if env.PROCESS_EXISTING:
        watcher.sweep()

    status_server = None
    if env.STATUS_PORT:
        from print_monitor.api import StatusServer, create_app
        status_server = StatusServer(create_app(pipeline, watcher), env.STATUS_PORT)
        status_server.start()
        logger.info("Status API listening on 127.0.0.1:%d", env.STATUS_PORT)

    logger.info("Service started. Printing to '%s'", env.PRINTER_NAME)
    try:
        while not stop_event.wait(1.0):
            pass
    finally:
        watcher.stop()
        if status_server:
            status_server.stop()
        audit("agent_shutdown", pipeline.counters())
        logger.info("Print Monitor Service stopped.")

    return EXIT_OK
