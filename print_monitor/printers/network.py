import socket

from print_monitor.errors import PrintError
from print_monitor.printers.base import PrinterProvider

DEFAULT_PORT = 9100


def parse_address(printer: str) -> tuple[str, int]:
    host, sep, port = printer.rpartition(":")
    if not sep:
        return printer, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError:
        raise PrintError(f"Invalid printer address '{printer}'", printer=printer, stage="open")


class NetworkPrinterProvider(PrinterProvider):
    """
    RAW TCP (JetDirect, port 9100) for printers addressed as host[:port].
    """

    def __init__(self, timeout: float = 10):
        self.timeout = timeout

    def print_raw(self, printer: str, data: bytes) -> None:
        host, port = parse_address(printer)
        stage = "open"
        try:
            with socket.create_connection((host, port), timeout=self.timeout) as s:
                stage = "write"
                s.sendall(data)
        except OSError as e:
            raise PrintError(f"Network send error to {host}:{port} -> {e}", printer=printer,
                             code=e.errno, stage=stage) from e
