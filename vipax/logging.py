"""Console logging for vipax.

The console logger is shared by the emulator core, the debugger and the host
loop. Long headless runs get a tqdm progress bar fed from compiled scans
through io_callback.
"""

import time
import sys
from typing import Callable

import jax
from jax.experimental import io_callback

from tqdm import tqdm

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


class ConsoleLogger:
    """Level-filtered console logger with elapsed-time stamps.

    Levels are coloured only when the output stream is a terminal.
    """

    def __init__(self, name: str = "vipax", log_level: str = "INFO", stream=None):
        self.name = name
        self.stream = stream
        self.start_time = time.time()
        self.set_level(log_level)

    def set_level(self, log_level: str):
        """Change the minimum level that gets printed."""
        if log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.log_level = log_level.upper()

    def _format_message(self, level: str, message: str, out) -> str:
        level_str = f"[{level:>8s}]"
        if hasattr(out, "isatty") and out.isatty():
            level_str = f"{COLORS[level]}{level_str}{RESET}"
        return f"[{time.time() - self.start_time:8.2f}s]{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if LEVELS.index(level) >= LEVELS.index(self.log_level):
            out = self.stream or sys.stdout
            print(self._format_message(level, message, out), file=out, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


logger = ConsoleLogger("vipax")


def scan_with_progress(n: int, desc: str) -> Callable:
    """Decorate a scan body so a tqdm bar follows the iteration counter ``x``.

    The bar is opened on the first iteration, bumped once every
    ``print_rate`` iterations plus once for the leftover, and closed on the
    last one.
    """
    print_rate = max(1, min(n // 20, 50))
    remainder = n % print_rate
    bars = {}

    def _open():
        bars[0] = tqdm(total=n, desc=desc, unit="frame")

    def _update(steps):
        if 0 in bars:
            bars[0].update(int(steps))

    def _close():
        if 0 in bars:
            bars.pop(0).close()

    def _callback_if(condition, callback, *args):
        jax.lax.cond(
            condition,
            lambda _: io_callback(callback, None, *args, ordered=True),
            lambda _: None,
            operand=None,
        )

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, iter_num):
            _callback_if(iter_num == 0, _open)
            result = func(carry, iter_num)
            _callback_if((iter_num + 1) % print_rate == 0, _update, print_rate)
            if remainder:
                _callback_if(iter_num == n - 1, _update, remainder)
            _callback_if(iter_num == n - 1, _close)
            return result

        return wrapper_with_progress

    return _scan_progress_decorator
