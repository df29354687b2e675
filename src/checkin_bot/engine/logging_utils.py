import logging
import os
import sys
from .config import Config


_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_MAGENTA = "\033[35m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[31m",
}

# Workflow commands understood by the Actions runner.
_ACTIONS_COMMANDS = {
    "DEBUG": "::debug::",
    "WARNING": "::warning::",
    "ERROR": "::error::",
    "CRITICAL": "::error::",
}

LOGGER_NAME = "checkin_bot"
LOG_FORMAT = "%(asctime)sZ %(levelname)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def running_in_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS", "").strip().lower() == "true"


def _stream_supports_color() -> bool:
    if os.getenv("NO_COLOR"):
        return False
    force = os.getenv("FORCE_COLOR", "").strip().lower()
    if force in {"1", "true", "yes"}:
        return True
    return bool(sys.stderr.isatty())


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = _COLORS.get(record.levelname.upper(), "")
        if not color:
            return message

        # Decision lines get their own tone so a long run is easy to scan.
        if "DRY RUN" in message:
            return f"{_BOLD}{_YELLOW}{message}{_RESET}"
        if "COMMENTING" in message:
            return f"{_BOLD}{_CYAN}{message}{_RESET}"
        if "LABELING" in message:
            return f"{_BOLD}{_MAGENTA}{message}{_RESET}"
        if "SKIPPING" in message:
            return f"{_DIM}{color}{message}{_RESET}"
        if "COMPLETED" in message:
            return f"{_BOLD}{_GREEN}{message}{_RESET}"
        return f"{color}{message}{_RESET}"


class ActionsFormatter(logging.Formatter):
    """Prefix warnings and errors with workflow commands so they show up as
    annotations on the job summary."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _ACTIONS_COMMANDS.get(record.levelname.upper())
        if not command:
            return message
        # Workflow commands are line based; multi-line data must be escaped.
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"{command}{escaped}"


def _stream_formatter() -> logging.Formatter:
    if running_in_actions():
        return ActionsFormatter(fmt="%(message)s")
    if _stream_supports_color():
        return ColorFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)


def setup_logging(cfg: Config) -> logging.Logger:
    level = getattr(logging, cfg.log_level, logging.INFO)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(_stream_formatter())
    logger.addHandler(stream_handler)

    if cfg.log_path:
        cfg.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(cfg.log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(file_handler)

    return logger
