import sys

from print_monitor.printers.base import PrinterProvider
from print_monitor.printers.cups import CupsPrinterProvider
from print_monitor.printers.network import NetworkPrinterProvider
from print_monitor.printers.windows import WindowsPrinterProvider

BACKENDS = ("auto", "windows", "cups", "network")


def get_printer_provider(backend: str = "auto", doc_name: str = "RAW Print Document",
                         timeout: float = 30) -> PrinterProvider:
    backend = (backend or "auto").lower()
    if backend == "auto":
        backend = "windows" if sys.platform.startswith("win") else "cups"

    if backend == "windows":
        return WindowsPrinterProvider(doc_name=doc_name)
    if backend == "cups":
        return CupsPrinterProvider(doc_name=doc_name, timeout=timeout)
    if backend == "network":
        return NetworkPrinterProvider(timeout=timeout)
    raise ValueError(f"Unsupported printer backend: {backend}")


__all__ = [
    "BACKENDS",
    "PrinterProvider",
    "CupsPrinterProvider",
    "NetworkPrinterProvider",
    "WindowsPrinterProvider",
    "get_printer_provider",
]
