# core/debug.py
import os
import sys
import time
import traceback
from pathlib import Path
from typing import Optional


_DEBUG = os.getenv("MSP_DEBUG") == "1"

LOG_PATH = Path(__file__).resolve().parents[1] / "msp_debug.log"


def _timestamp() -> str:
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S")
    except Exception:
        return "unknown-time"


def _append(line: str) -> None:
    try:
        with LOG_PATH.open("a", encoding="utf-8") as f:
            f.write(line)
    except Exception:
        pass


def debug_log(message: str) -> None:
    if not _DEBUG:
        return

    _append(f"[{_timestamp()}] {message}\n")
    try:
        print(f"[DEBUG] {message}")
    except Exception:
        pass


class Logger:
    """
    Tagged logger that never raises. Errors always go to stderr and the log
    file; debug lines only when MSP_DEBUG=1.
    """

    def __init__(self, name: str):
        self.name = name

    def error(self, message: str, exc: Optional[BaseException] = None) -> None:
        if exc is not None:
            message = f"{message} {exc!r}"

        _append(f"[{_timestamp()}] [{self.name}] ERROR {message}\n")
        if exc is not None and _DEBUG:
            _append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

        try:
            print(f"[{self.name}] {message}", file=sys.stderr)
        except Exception:
            pass

    def debug(self, message: str) -> None:
        debug_log(f"[{self.name}] {message}")
