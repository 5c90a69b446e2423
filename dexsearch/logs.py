"""Contains logging related functionality."""

import logging
import logging.config
import typing
from pathlib import Path

import yaml

PACKAGE_LOGGER = "dexsearch"

logger = logging.getLogger(__name__)


def init_logging(filepath: Path, level: str | None = None) -> dict[str, typing.Any]:
    """Read logging config yaml file from `filepath` and apply it globally.

    The `dexsearch` logger level from the file can be overridden, e.g. with
    ``DEBUG`` to trace search session state transitions and upstream requests.

    :param filepath: Path to the logging configuration yaml file.
    :param level: Optional level name replacing the configured `dexsearch` logger level.
    :returns: The applied logging configuration as dict.
    :raises FileNotFoundError: If `filepath` does not exist.
    :raises ValueError: If the file is not a logging configuration mapping or `level` is unknown.
    """
    if not filepath.exists():
        raise FileNotFoundError(f"Logging config not found: {filepath}")

    config = yaml.safe_load(filepath.read_text(encoding="utf-8"))
    if not isinstance(config, dict):
        raise ValueError(f"Logging config must be a mapping: {filepath}")

    if level is not None:
        level_name = level.upper()
        if not isinstance(logging.getLevelName(level_name), int):
            raise ValueError(f"Unknown log level: {level}")
        loggers = config.setdefault("loggers", {})
        loggers.setdefault(PACKAGE_LOGGER, {})["level"] = level_name

    logging.config.dictConfig(config)
    logger.debug("Logging configured from %s", filepath)
    return config
