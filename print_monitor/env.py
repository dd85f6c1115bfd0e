import os
from dotenv import load_dotenv

load_dotenv()  # lee .env del cwd

# valores numéricos inválidos; service.run los reporta como error de configuración
CONFIG_ERRORS: list[str] = []


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        CONFIG_ERRORS.append(f"{name}={raw!r} is not a valid {cast.__name__}")
        return cast(default)


AGENT_ID = os.getenv("AGENT_ID", "print-monitor")

WATCHED_PATH = os.getenv("WATCHED_PATH", "./ToPrint")
PROCESSED_PATH = os.getenv("PROCESSED_PATH", "./Processed")

PRINTER_NAME = os.getenv("PRINTER_NAME", "Cozinha")
PRINTER_BACKEND = os.getenv("PRINTER_BACKEND", "auto")  # auto|windows|cups|network
DOC_NAME = os.getenv("DOC_NAME", "RAW Print Document")
PRINT_TIMEOUT_SECONDS = _number("PRINT_TIMEOUT_SECONDS", "30")

SETTLE_SECONDS = _number("SETTLE_SECONDS", "0.5")
SETTLE_MODE = os.getenv("SETTLE_MODE", "fixed")  # fixed|stable
WATCH_WORKERS = _number("WATCH_WORKERS", "4", int)
PROCESS_EXISTING = _flag("PROCESS_EXISTING")

AUDIT_LOG_PATH = os.getenv("AUDIT_LOG_PATH", "./logs/audit.jsonl")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")

STATUS_PORT = _number("STATUS_PORT", "0", int)
STATUS_TOKEN = os.getenv("STATUS_TOKEN", "")
