"""Tests for the RAW printer providers."""

import subprocess
import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from print_monitor.errors import PrintError
from print_monitor.printers import (
    CupsPrinterProvider,
    NetworkPrinterProvider,
    WindowsPrinterProvider,
    get_printer_provider,
)
from print_monitor.printers.network import parse_address


class FakeWinError(Exception):
    def __init__(self, winerror, funcname, strerror):
        super().__init__(winerror, funcname, strerror)
        self.winerror = winerror
        self.funcname = funcname
        self.strerror = strerror


@pytest.fixture
def win32():
    """Stand-in win32print/pywintypes modules for the Windows provider."""
    win32print = MagicMock()
    win32print.PRINTER_ENUM_LOCAL = 2
    win32print.PRINTER_ENUM_CONNECTIONS = 4
    win32print.EnumPrinters.return_value = [(0, "", "Cozinha", ""), (0, "", "Bar", "")]
    win32print.OpenPrinter.return_value = "HANDLE"
    win32print.WritePrinter.side_effect = lambda h, data: len(data)
    pywintypes = types.SimpleNamespace(error=FakeWinError)
    with patch.dict(sys.modules, {"win32print": win32print, "pywintypes": pywintypes}):
        yield win32print


class TestWindowsPrinterProvider:

    def test_full_spooler_sequence(self, win32):
        WindowsPrinterProvider(doc_name="Ticket").print_raw("Cozinha", b"\x1b!\x30HI")

        win32.OpenPrinter.assert_called_once_with("Cozinha")
        win32.StartDocPrinter.assert_called_once_with("HANDLE", 1, ("Ticket", None, "RAW"))
        win32.StartPagePrinter.assert_called_once_with("HANDLE")
        win32.WritePrinter.assert_called_once_with("HANDLE", b"\x1b!\x30HI")
        win32.EndPagePrinter.assert_called_once_with("HANDLE")
        win32.EndDocPrinter.assert_called_once_with("HANDLE")
        win32.ClosePrinter.assert_called_once_with("HANDLE")

    def test_printer_name_match_is_case_insensitive(self, win32):
        WindowsPrinterProvider().print_raw("cozinha", b"x")
        win32.OpenPrinter.assert_called_once_with("cozinha")

    def test_unknown_printer_fails_fast(self, win32):
        with pytest.raises(PrintError) as exc:
            WindowsPrinterProvider().print_raw("Garagem", b"x")

        assert exc.value.code == 1801
        assert exc.value.stage == "open"
        win32.OpenPrinter.assert_not_called()

    def test_write_error_carries_winerror_and_cleans_up(self, win32):
        win32.WritePrinter.side_effect = FakeWinError(63, "WritePrinter", "Print job deleted")

        with pytest.raises(PrintError) as exc:
            WindowsPrinterProvider().print_raw("Cozinha", b"x")

        assert exc.value.code == 63
        assert exc.value.stage == "write"
        win32.EndPagePrinter.assert_called_once()
        win32.EndDocPrinter.assert_called_once()
        win32.ClosePrinter.assert_called_once()

    def test_open_error(self, win32):
        win32.OpenPrinter.side_effect = FakeWinError(5, "OpenPrinter", "Access is denied.")

        with pytest.raises(PrintError) as exc:
            WindowsPrinterProvider().print_raw("Cozinha", b"x")

        assert exc.value.code == 5
        assert exc.value.stage == "open"
        win32.ClosePrinter.assert_not_called()

    def test_short_write_is_failure(self, win32):
        win32.WritePrinter.side_effect = lambda h, data: len(data) - 1

        with pytest.raises(PrintError, match="Short write"):
            WindowsPrinterProvider().print_raw("Cozinha", b"abc")
        win32.ClosePrinter.assert_called_once()


class TestCupsPrinterProvider:

    @pytest.fixture(autouse=True)
    def lp_available(self):
        with patch("print_monitor.printers.cups.shutil.which", return_value="/usr/bin/lp"):
            yield

    def test_sends_raw_on_stdin(self):
        done = subprocess.CompletedProcess([], 0, b"request id is Cozinha-7", b"")
        with patch("print_monitor.printers.cups.subprocess.run", return_value=done) as run:
            CupsPrinterProvider(doc_name="Ticket", timeout=12).print_raw("Cozinha", b"data")

        args, kwargs = run.call_args
        assert args[0] == ["lp", "-d", "Cozinha", "-o", "raw", "-t", "Ticket"]
        assert kwargs["input"] == b"data"
        assert kwargs["timeout"] == 12

    def test_nonzero_exit(self):
        done = subprocess.CompletedProcess([], 1, b"", b"lp: The printer or class does not exist.")
        with patch("print_monitor.printers.cups.subprocess.run", return_value=done):
            with pytest.raises(PrintError, match="does not exist") as exc:
                CupsPrinterProvider().print_raw("Nope", b"data")
        assert exc.value.code == 1

    def test_timeout(self):
        with patch("print_monitor.printers.cups.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(["lp"], 30)):
            with pytest.raises(PrintError, match="timed out"):
                CupsPrinterProvider().print_raw("Cozinha", b"data")

    def test_lp_missing(self):
        with patch("print_monitor.printers.cups.shutil.which", return_value=None):
            with pytest.raises(PrintError) as exc:
                CupsPrinterProvider().print_raw("Cozinha", b"data")
        assert exc.value.stage == "open"


class TestNetworkPrinterProvider:

    def test_parse_address(self):
        assert parse_address("10.0.0.5") == ("10.0.0.5", 9100)
        assert parse_address("printer.local:9101") == ("printer.local", 9101)
        with pytest.raises(PrintError):
            parse_address("host:port")

    def test_sends_all_bytes(self):
        sock = MagicMock()
        conn = MagicMock()
        conn.__enter__.return_value = sock
        with patch("print_monitor.printers.network.socket.create_connection",
                   return_value=conn) as create:
            NetworkPrinterProvider(timeout=3).print_raw("10.0.0.5:9100", b"abc")

        create.assert_called_once_with(("10.0.0.5", 9100), timeout=3)
        sock.sendall.assert_called_once_with(b"abc")

    def test_connection_refused(self):
        with patch("print_monitor.printers.network.socket.create_connection",
                   side_effect=ConnectionRefusedError(111, "Connection refused")):
            with pytest.raises(PrintError) as exc:
                NetworkPrinterProvider().print_raw("10.0.0.5", b"abc")
        assert exc.value.code == 111
        assert exc.value.stage == "open"


class TestGetPrinterProvider:

    def test_explicit_backends(self):
        assert isinstance(get_printer_provider("windows"), WindowsPrinterProvider)
        assert isinstance(get_printer_provider("CUPS"), CupsPrinterProvider)
        assert isinstance(get_printer_provider("network"), NetworkPrinterProvider)

    def test_auto_follows_platform(self, monkeypatch):
        monkeypatch.setattr(sys, "platform", "win32")
        assert isinstance(get_printer_provider("auto"), WindowsPrinterProvider)
        monkeypatch.setattr(sys, "platform", "linux")
        assert isinstance(get_printer_provider("auto"), CupsPrinterProvider)

    def test_options_passed_through(self):
        p = get_printer_provider("cups", doc_name="Cozinha ticket", timeout=7)
        assert p.doc_name == "Cozinha ticket"
        assert p.timeout == 7

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_printer_provider("carrier-pigeon")


class TestPrintError:

    def test_str_includes_code_and_stage(self):
        err = PrintError("boom", printer="Cozinha", code=1801, stage="open")
        assert str(err) == "boom (stage=open, code=1801)"
        assert isinstance(err, RuntimeError)

    def test_str_without_code(self):
        assert str(PrintError("boom")) == "boom (stage=submit)"
