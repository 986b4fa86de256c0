"""Configures application-wide logging."""

import logging
import logging.handlers
import os
from pathlib import Path

_installed_handlers = []

def get_app_data_dir() -> Path:
    """Returns the application data directory."""
    home = os.getenv("MEDIANSTACK_HOME")
    if home:
        return Path(home)
    app_data = os.getenv("APPDATA")
    if app_data:
        return Path(app_data) / "medianstack"
    return Path.home() / ".medianstack"

def setup_logging(debug: bool = False):
    """Sets up logging to a rotating file in the app data directory and to stderr."""
    log_dir = get_app_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "app.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10*1024*1024, backupCount=5
    )
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    console.setLevel(logging.DEBUG if debug else logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    # Replace handlers from an earlier call instead of stacking duplicates
    for old in _installed_handlers:
        root_logger.removeHandler(old)
        old.close()
    _installed_handlers[:] = [handler, console]
    root_logger.addHandler(handler)
    root_logger.addHandler(console)

    # Configure logging for key modules
    logging.getLogger("medianstack.imaging.stacker").setLevel(logging.DEBUG if debug else logging.INFO)
    logging.getLogger("PIL").setLevel(logging.INFO)
