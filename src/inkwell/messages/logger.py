"""
Logging configuration for inkwell - readable, color-coded output.

InkwellLogger writes every line to the console and to logs/inkwell.log so a
failed scheduled run can be read back afterwards. Automation steps log under
``inkwell.step.<name>`` and get their step name printed in front of each line.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import colorama

# Initialize colorama for cross-platform color support
colorama.init()

_ROOT = "inkwell"
_STEP_PREFIX = "inkwell.step."


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors"""

    COLORS = {
        "INFO": colorama.Fore.BLUE,
        "WARNING": colorama.Fore.YELLOW,
        "ERROR": colorama.Fore.RED,
        "DEBUG": colorama.Fore.BLUE,
        "START": colorama.Fore.BLUE,
        "OK": colorama.Fore.GREEN,
    }

    def format(self, record):
        # inkwell.step.authenticate -> [authenticate]
        if record.name.startswith(_STEP_PREFIX):
            step_name = record.name[len(_STEP_PREFIX) :]
            white = colorama.Fore.WHITE
            reset = colorama.Style.RESET_ALL
            record.step_name = f"{white}[{step_name}]{reset} "
        else:
            record.step_name = ""

        if record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{colorama.Style.RESET_ALL}"

        if hasattr(record, "color_prefix"):
            color = self.COLORS.get(record.color_prefix, "")
            record.msg = f"{color}{record.msg}{colorama.Style.RESET_ALL}"

        return super().format(record)


class InkwellLogger:
    """
    Central logging class for inkwell.

    Wraps a standard logger with console and file handlers that are set up
    once per logger name. Messages never propagate to the root logger.
    """

    class Style:
        """ANSI color codes for paths"""

        CYAN = colorama.Fore.CYAN
        GREEN = colorama.Fore.GREEN
        YELLOW = colorama.Fore.YELLOW
        BLUE = colorama.Fore.BLUE
        MAGENTA = colorama.Fore.MAGENTA
        RED = colorama.Fore.RED
        RESET = colorama.Style.RESET_ALL

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.style = self.Style()

        if not self.logger.handlers:
            self.logger.setLevel(_current_level())

            log_dir = Path.cwd() / "logs"
            log_dir.mkdir(exist_ok=True)

            log_file = log_dir / "inkwell.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                ColorFormatter(
                    "%(asctime)s  %(step_name)s%(message)s", datefmt="%H:%M:%S"
                )
            )

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(
                ColorFormatter(
                    "%(asctime)s  %(step_name)s%(message)s", datefmt="%H:%M:%S"
                )
            )

            self.logger.addHandler(file_handler)
            self.logger.addHandler(console_handler)
            self.logger.propagate = False

    def info(self, msg: str, color_prefix: Optional[str] = None) -> None:
        """Log info message with optional color prefix"""
        extra = {"color_prefix": color_prefix} if color_prefix else None
        self.logger.info(msg, extra=extra)

    def start(self, msg: str) -> None:
        """Log start message"""
        self.info(f"START {msg}", color_prefix="START")

    def success(self, msg: str) -> None:
        """Log success message in green"""
        self.info(f"OK {msg}", color_prefix="OK")

    def error(self, msg: str) -> None:
        """Log error message in red"""
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        """Log warning message in yellow"""
        self.logger.warning(msg)

    def debug(self, msg: str) -> None:
        """Log debug message in blue"""
        self.logger.debug(msg)

    def path(self, path: str, color: str = None) -> str:
        """Format a path with color"""
        if not color:
            color = self.style.CYAN
        return f"{color}{path}{self.style.RESET}"


_verbose = False


def _current_level() -> int:
    return logging.DEBUG if _verbose else logging.INFO


def set_verbose(verbose: bool = True) -> None:
    """Switch every inkwell logger (existing and future) to DEBUG or INFO."""
    global _verbose
    _verbose = verbose
    level = _current_level()
    for name, existing in logging.Logger.manager.loggerDict.items():
        if (name == _ROOT or name.startswith(f"{_ROOT}.")) and isinstance(
            existing, logging.Logger
        ):
            existing.setLevel(level)


def get_logger(name: str) -> InkwellLogger:
    """Get a configured logger instance."""
    return InkwellLogger(name)
