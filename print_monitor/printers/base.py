from abc import ABC, abstractmethod


class PrinterProvider(ABC):

    @abstractmethod
    def print_raw(self, printer: str, data: bytes) -> None:
        """
        Submit `data` to `printer` as a single RAW job.

        Returns None on success and raises PrintError on any failure.
        Implementations must not keep a reference to `data` once they return.
        """
