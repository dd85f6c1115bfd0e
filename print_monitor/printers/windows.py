import logging

from print_monitor.errors import PrintError
from print_monitor.printers.base import PrinterProvider

logger = logging.getLogger(__name__)


def _winerror(exc) -> int | None:
    code = getattr(exc, "winerror", None)
    if code is None and getattr(exc, "args", None):
        code = exc.args[0] if isinstance(exc.args[0], int) else None
    return code


class WindowsPrinterProvider(PrinterProvider):
    """RAW spooler jobs through win32print (pywin32)."""

    def __init__(self, doc_name: str = "RAW Print Document"):
        self.doc_name = doc_name

    def known_printers(self) -> list[str]:
        import win32print
        flags = win32print.PRINTER_ENUM_LOCAL | win32print.PRINTER_ENUM_CONNECTIONS
        return [p[2] for p in win32print.EnumPrinters(flags)]

    def print_raw(self, printer: str, data: bytes) -> None:
        import win32print
        import pywintypes

        stage = "open"
        try:
            # OpenPrinter no falla rápido en todos los drivers; validar antes
            if printer.lower() not in (p.lower() for p in self.known_printers()):
                raise PrintError(f"Printer '{printer}' not found", printer=printer,
                                 code=1801, stage=stage)  # ERROR_INVALID_PRINTER_NAME

            h = win32print.OpenPrinter(printer)
            try:
                stage = "start_doc"
                win32print.StartDocPrinter(h, 1, (self.doc_name, None, "RAW"))
                try:
                    stage = "start_page"
                    win32print.StartPagePrinter(h)
                    try:
                        stage = "write"
                        written = win32print.WritePrinter(h, data)
                        if written != len(data):
                            raise PrintError(
                                f"Short write to '{printer}': {written}/{len(data)} bytes",
                                printer=printer, stage=stage,
                            )
                    finally:
                        win32print.EndPagePrinter(h)
                finally:
                    win32print.EndDocPrinter(h)
            finally:
                win32print.ClosePrinter(h)
        except pywintypes.error as e:
            raise PrintError(f"Spooler error on '{printer}': {e.strerror}", printer=printer,
                             code=_winerror(e), stage=stage) from e

        logger.debug("Wrote %d bytes to %s", len(data), printer)
