from __future__ import annotations
"""Module entry point for the S3 file manager application."""
import logging
import os
import sys

from PySide6 import QtWidgets

from .qt_view import S3FileManagerWindow
from .settings import LOG_LEVELS, SettingsStorage

LOG_LEVEL_ENV = "S3FM_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> str:
    level = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if level not in LOG_LEVELS:
        level = SettingsStorage().load().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(max(logging.getLevelName(level), logging.INFO))
    return level


def main() -> None:
    configure_logging()
    app = QtWidgets.QApplication(sys.argv)
    window = S3FileManagerWindow()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
