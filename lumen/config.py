"""
Lumen Configuration
===================
Run-time settings shared by the CLI runner and the REPL, plus the one
place that installs a logging handler. The library modules only create
loggers; they never configure them.
"""
import logging
import os
from dataclasses import dataclass, fields

LOG_LEVEL_ENV = "LUMEN_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass
class LumenConfig:
    """Settings for one run of the Lumen pipeline."""

    file_path: str = "<stdin>"       # Name used in diagnostics
    log_level: str = "WARNING"       # Any logging level name
    show_parse_errors: bool = True   # Print non-fatal parse diagnostics
    show_ast: bool = False           # Print the parsed program before running it

    @classmethod
    def from_env(cls, **overrides) -> "LumenConfig":
        """Build a config from the environment; explicit overrides win.

        Overrides whose value is None are ignored so argparse defaults
        do not mask the environment.
        """
        config = cls()
        env_level = os.environ.get(LOG_LEVEL_ENV)
        if env_level:
            config.log_level = env_level.upper()

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown config option: {key}")
            if value is not None:
                setattr(config, key, value)
        return config

    @property
    def level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING


def configure_logging(config: LumenConfig) -> None:
    """Route the `lumen` package loggers to stderr at the configured level."""
    package_logger = logging.getLogger("lumen")
    package_logger.setLevel(config.level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
