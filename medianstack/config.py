"""Manages application configuration via an INI file."""

import configparser
import logging
import os

from medianstack.logging_setup import get_app_data_dir

log = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "stacking": {
        "max_workers": "0",  # 0 = one worker per CPU
        "alpha_mode": "first",  # Options: "first", "median"
    },
    "output": {
        "jpeg_quality": "75",
    },
    "input": {
        "default_directory": "",
    },
}

class AppConfig:
    def __init__(self):
        self.config_path = get_app_data_dir() / "medianstack.ini"
        self.config = configparser.ConfigParser()
        self.load()

    def load(self):
        """Loads the config, creating it with defaults if it doesn't exist."""
        if not self.config_path.exists():
            log.info(f"Creating default config at {self.config_path}")
            self.config.read_dict(DEFAULT_CONFIG)
            self.save()
        else:
            log.info(f"Loading config from {self.config_path}")
            self.config.read(self.config_path)
            # Ensure all sections and keys exist
            missing = False
            for section, keys in DEFAULT_CONFIG.items():
                if not self.config.has_section(section):
                    self.config.add_section(section)
                for key, value in keys.items():
                    if not self.config.has_option(section, key):
                        self.config.set(section, key, value)
                        missing = True
            if missing:
                self.save()

    def save(self):
        """Saves the current configuration to the INI file."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with self.config_path.open("w") as f:
                self.config.write(f)
            log.info(f"Saved config to {self.config_path}")
        except OSError as e:
            log.error(f"Failed to save config to {self.config_path}: {e}")

    def get(self, section, key, fallback=None):
        return self.config.get(section, key, fallback=fallback)

    def getint(self, section, key, fallback=None):
        return self.config.getint(section, key, fallback=fallback)

    def set(self, section, key, value):
        if not self.config.has_section(section):
            self.config.add_section(section)
        self.config.set(section, key, str(value))

    # Typed accessors for the stacking settings

    def max_workers(self) -> int:
        """Returns the configured row worker count, resolving 0 to the CPU count."""
        try:
            workers = self.getint("stacking", "max_workers", fallback=0)
        except ValueError:
            log.warning("Invalid stacking.max_workers value, using CPU count")
            workers = 0
        if workers <= 0:
            workers = os.cpu_count() or 1
        return workers

    def alpha_mode(self) -> str:
        return self.get("stacking", "alpha_mode", fallback="first").strip().lower()

    def jpeg_quality(self) -> int:
        try:
            quality = self.getint("output", "jpeg_quality", fallback=75)
        except ValueError:
            log.warning("Invalid output.jpeg_quality value, using 75")
            return 75
        return max(1, min(95, quality))

# Global config instance
config = AppConfig()
