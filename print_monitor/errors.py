from typing import Optional


class PrintMonitorError(Exception):
    """Base class for errors raised by print_monitor."""


class ConfigurationError(PrintMonitorError):
    """Startup configuration is unusable (e.g. the watched directory is missing)."""


class PrintError(PrintMonitorError, RuntimeError):
    """
    A RAW job could not be submitted to the printer.

    `code` is the OS error code reported by the spooler (winerror on Windows,
    the lp return code with CUPS) or None when the failure has no code.
    `stage` names the spooler step that failed.
    """

    def __init__(self, message: str, printer: str = "", code: Optional[int] = None,
                 stage: str = "submit"):
        super().__init__(message)
        self.printer = printer
        self.code = code
        self.stage = stage

    def __str__(self) -> str:
        msg = super().__str__()
        if self.code is not None:
            return f"{msg} (stage={self.stage}, code={self.code})"
        return f"{msg} (stage={self.stage})"
