import logging
import shutil
import subprocess

from print_monitor.errors import PrintError
from print_monitor.printers.base import PrinterProvider

logger = logging.getLogger(__name__)


class CupsPrinterProvider(PrinterProvider):
    """RAW jobs through the CUPS `lp` command (Linux/macOS)."""

    def __init__(self, doc_name: str = "RAW Print Document", timeout: float = 30):
        self.doc_name = doc_name
        self.timeout = timeout

    def command(self, printer: str) -> list[str]:
        return ["lp", "-d", printer, "-o", "raw", "-t", self.doc_name]

    def print_raw(self, printer: str, data: bytes) -> None:
        if not shutil.which("lp"):
            raise PrintError("lp not found on PATH", printer=printer, stage="open")

        try:
            proc = subprocess.run(
                self.command(printer),
                input=data,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise PrintError(f"lp timed out after {self.timeout}s", printer=printer) from e
        except OSError as e:
            raise PrintError(f"Could not run lp: {e}", printer=printer, code=e.errno) from e

        if proc.returncode != 0:
            stderr = proc.stderr.decode(errors="ignore").strip()
            raise PrintError(f"lp failed: {stderr}", printer=printer, code=proc.returncode)

        logger.debug("lp accepted job for %s: %s", printer,
                     proc.stdout.decode(errors="ignore").strip())
