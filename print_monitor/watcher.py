import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer

from print_monitor.pipeline import JobPipeline

logger = logging.getLogger(__name__)

RAW_PATTERNS = ["*.raw"]


def is_raw_file(path) -> bool:
    return Path(path).suffix.lower() == ".raw"


class RawFileHandler(PatternMatchingEventHandler):
    """
    Hands every new *.raw file (any case) to the pipeline on a worker thread.

    Deliveries can overlap; the pipeline lock serializes the actual work.
    """

    def __init__(self, pipeline: JobPipeline, executor: ThreadPoolExecutor):
        super().__init__(patterns=RAW_PATTERNS, ignore_directories=True, case_sensitive=False)
        self.pipeline = pipeline
        self.executor = executor
        self.enabled = True
        self._pending: set[Path] = set()
        self._pending_lock = threading.Lock()

    @staticmethod
    def _key(path) -> Path:
        return Path(os.path.abspath(path))

    def is_pending(self, path) -> bool:
        """True while a run for `path` is queued or in progress."""
        with self._pending_lock:
            return self._key(path) in self._pending

    def _done(self, key: Path):
        with self._pending_lock:
            self._pending.discard(key)

    def pause(self):
        self.enabled = False

    def resume(self):
        self.enabled = True

    def submit(self, path) -> Future | None:
        if not self.enabled:
            logger.debug("Delivery paused, ignoring %s", path)
            return None
        key = self._key(path)
        with self._pending_lock:
            self._pending.add(key)
        future = self.executor.submit(self.pipeline.process, Path(path))
        future.add_done_callback(lambda f: self._done(key))
        return future

    def on_created(self, event: FileSystemEvent):
        self.submit(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        # productores que escriben un temporal y luego renombran a .raw
        if is_raw_file(event.dest_path):
            self.submit(event.dest_path)


class DirectoryWatcher:

    def __init__(self, watched_dir, pipeline: JobPipeline, workers: int = 4):
        self.watched_dir = Path(watched_dir)
        self.pipeline = pipeline
        self.executor = ThreadPoolExecutor(max_workers=max(1, workers),
                                           thread_name_prefix="print-job")
        self.handler = RawFileHandler(pipeline, self.executor)
        self.observer = Observer()
        self._started = False

    @property
    def watching(self) -> bool:
        return self._started and self.handler.enabled

    def start(self):
        self.observer.schedule(self.handler, str(self.watched_dir), recursive=False)
        self.observer.start()
        self._started = True
        logger.info("Watching for .RAW files in '%s'", self.watched_dir)

    def sweep(self) -> list[Future]:
        """
        Queue every *.raw already sitting in the watched directory, oldest first.

        Files an event has already queued since start() are skipped.
        """
        files = [p for p in self.watched_dir.iterdir()
                 if p.is_file() and is_raw_file(p) and not self.handler.is_pending(p)]
        files.sort(key=lambda p: p.stat().st_mtime)
        if files:
            logger.info("Found %d pending file(s) in '%s'", len(files), self.watched_dir)
        return [f for f in (self.handler.submit(p) for p in files) if f is not None]

    def stop(self):
        if self._started:
            self.observer.stop()
            self.observer.join()
            self._started = False
        # los trabajos en curso terminan; no se cortan a mitad de impresión
        self.executor.shutdown(wait=True)
        logger.info("Watcher stopped")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
