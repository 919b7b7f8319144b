"""
logging_utils.py - Console logging with level icons

Message-only output (no timestamps), each line prefixed by an icon for its
level. Library modules log through logging.getLogger(__name__); the CLI
calls setup_logging once.
"""

import logging

LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: "🔍",
    logging.INFO: "✔️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, "✔️")
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    if verbosity >= 1:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    # requests/urllib3 are chatty at debug level
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
