"""
Job pipeline: settle -> read -> rewrite -> print -> archive, one file at a time.

A single process-wide lock covers the whole sequence, so concurrent
notifications are serialized rather than dropped. A run never raises:
every outcome is reported as a JobResult and logged.
"""
import errno
import logging
import os
import shutil
import threading
import time
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from print_monitor.audit import audit as _audit
from print_monitor.errors import PrintError
from print_monitor.models import JobResult, JobState, RawJob
from print_monitor.printers.base import PrinterProvider
from print_monitor.rewriter import rewrite

logger = logging.getLogger(__name__)

SETTLE_MODES = ("fixed", "stable")
STABLE_POLL_SECONDS = 0.1
MAX_STABLE_POLLS = 20
HISTORY_MAX = 100

_file_lock = threading.Lock()


def archive_file(src: Path, archive_dir: Path) -> Path:
    """
    Move `src` into `archive_dir` under the same name.

    Never overwrites: an archived ticket with the same name raises FileExistsError.
    """
    dest = Path(archive_dir) / Path(src).name
    if dest.exists():
        raise FileExistsError(errno.EEXIST, "Already archived", str(dest))
    try:
        os.replace(src, dest)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        # otro volumen: copiar y borrar
        shutil.copy2(src, dest)
        os.unlink(src)
    return dest


class JobPipeline:

    def __init__(
        self,
        printer: str,
        archive_dir: Path,
        provider: PrinterProvider,
        settle_seconds: float = 0.5,
        settle_mode: str = "fixed",
        stable_checks: int = 3,
        audit: Optional[Callable[[str, dict], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if settle_mode not in SETTLE_MODES:
            raise ValueError(f"settle_mode must be one of {SETTLE_MODES}, got {settle_mode!r}")
        self.printer = printer
        self.archive_dir = Path(archive_dir)
        self.provider = provider
        self.settle_seconds = settle_seconds
        self.settle_mode = settle_mode
        self.stable_checks = max(1, stable_checks)
        self.audit = audit or _audit
        self.sleep = sleep

        self._history: deque[JobResult] = deque(maxlen=HISTORY_MAX)
        self._counters = {"printed": 0, "archived": 0, "failed": 0}
        self._stats_lock = threading.Lock()

    # -----------------------------
    # public
    # -----------------------------
    def process(self, path) -> JobResult:
        path = Path(path)
        result = JobResult(name=path.name)

        try:
            self._emit("job_detected", {"file": path.name})
            with _file_lock:
                result.state = JobState.locked
                logger.info("Processing new file: %s", path.name)
                self._run(path, result)
        except Exception as e:
            logger.exception("Unexpected error with file: %s", path.name)
            result.state = JobState.failed
            result.error = str(e) or type(e).__name__
            self._emit("job_failed", {"file": path.name, "stage": "unexpected",
                                      "error": result.error})
        finally:
            result.finished_at = datetime.now(timezone.utc)
            self._record(result)

        return result

    def recent(self, limit: int = 20) -> list[JobResult]:
        with self._stats_lock:
            items = list(self._history)
        return items[-limit:][::-1] if limit > 0 else []

    def counters(self) -> dict:
        with self._stats_lock:
            return dict(self._counters)

    # -----------------------------
    # stages
    # -----------------------------
    def _run(self, path: Path, result: JobResult):
        self._settle(path)

        try:
            job = RawJob.from_file(path)
        except OSError as e:
            logger.error("Could not read %s: %s", path.name, e)
            self._fail(result, "read", e, getattr(e, "errno", None))
            return
        result.state = JobState.read
        result.bytes_in = job.size

        data = rewrite(job.data)
        result.state = JobState.transformed
        result.bytes_out = len(data)

        try:
            self.provider.print_raw(self.printer, data)
        except PrintError as e:
            logger.error("Print Error: Failed to print %s: %s", job.name, e)
            self._fail(result, "print", e, e.code)
            return

        result.printed = True
        result.state = JobState.printed
        logger.info("Successfully printed: %s", job.name)
        self._emit("job_printed", {"file": job.name, "printer": self.printer,
                                   "bytes": result.bytes_out})

        try:
            dest = archive_file(path, self.archive_dir)
        except OSError as e:
            logger.warning("Printed but could not move file: %s: %s", job.name, e)
            result.error = str(e)
            result.error_code = e.errno
            self._emit("job_archive_failed", {"file": job.name, "error": str(e)})
            return

        result.archived = True
        result.state = JobState.archived
        logger.info("Moved file to processed folder: %s", job.name)
        self._emit("job_archived", {"file": job.name, "dest": str(dest)})

    def _settle(self, path: Path):
        self.sleep(self.settle_seconds)
        if self.settle_mode != "stable":
            return

        last = None
        streak = 0
        for _ in range(MAX_STABLE_POLLS):
            try:
                st = path.stat()
            except OSError:
                return  # la lectura reportará el error
            sig = (st.st_size, st.st_mtime_ns)
            streak = streak + 1 if sig == last else 1
            last = sig
            if streak >= self.stable_checks:
                return
            self.sleep(STABLE_POLL_SECONDS)
        logger.warning("%s still changing after %d polls; reading anyway",
                       path.name, MAX_STABLE_POLLS)

    def _fail(self, result: JobResult, stage: str, exc: Exception, code: Optional[int]):
        result.state = JobState.failed
        result.error = str(exc)
        result.error_code = code
        self._emit("job_failed", {"file": result.name, "stage": stage,
                                  "error": result.error, "code": code})

    def _emit(self, event: str, payload: dict):
        try:
            self.audit(event, payload)
        except Exception as e:
            logger.warning("Audit hook failed for %s: %s", event, e)

    def _record(self, result: JobResult):
        with self._stats_lock:
            self._history.append(result)
            if result.printed:
                self._counters["printed"] += 1
            if result.archived:
                self._counters["archived"] += 1
            if result.state == JobState.failed:
                self._counters["failed"] += 1
