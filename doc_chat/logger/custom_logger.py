import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# -------------------------------------------------
# Console with proper color handling
# -------------------------------------------------
console = Console(force_terminal=True, color_system="truecolor")

# -------------------------------------------------
# Noisy libraries and their ceiling level
# -------------------------------------------------
_QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "urllib3": logging.WARNING,
    "pinecone": logging.WARNING,
    "groq": logging.WARNING,
}


class CustomLogger:
    """
    Configures the root logger once with a RichHandler and hands out
    named loggers. Level comes from LOG_LEVEL (default INFO).
    """

    _configured = False

    def __init__(self, level: str | None = None):
        self.level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        if not CustomLogger._configured:
            self._configure()
            CustomLogger._configured = True

    def _configure(self) -> None:
        logging.basicConfig(
            level=self.level,
            format="%(message)s",  # Rich handles formatting
            datefmt="[%H:%M:%S.%f]",
            handlers=[
                RichHandler(
                    console=console,
                    rich_tracebacks=True,
                    tracebacks_show_locals=False,
                    show_time=True,
                    show_level=True,
                    show_path=True,
                    log_time_format="%H:%M:%S.%f",
                )
            ],
        )

        for name, level in _QUIET_LOGGERS.items():
            logging.getLogger(name).setLevel(level)

    def get_logger(self, name: str = "doc_chat") -> logging.Logger:
        return logging.getLogger(name)
