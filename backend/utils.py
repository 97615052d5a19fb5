import logging
import tomllib
import warnings
from typing import Callable

from cachetools.func import ttl_cache

from settings import PROJECT_PATH


def setup_logs():
    # logging.captureWarnings(True)
    warnings.simplefilter("default")
    logging.getLogger("pingcode").setLevel(logging.DEBUG)
    logging.basicConfig()


def get_version() -> str:
    """Read version from pyproject.toml"""

    with open(PROJECT_PATH / "pyproject.toml", "rb") as f:
        pyproject = tomllib.load(f)
    return pyproject["project"]["version"]


loggers: dict[int, Callable] = {}


def ratelimited_log(delay_or_fn: int | Callable, msg=None):
    """Log the same message at most once every `delay` seconds (60 by default)"""
    if callable(delay_or_fn):
        logger_method = delay_or_fn
        delay = 60
    else:
        delay = delay_or_fn
        logger_method = None

    if delay not in loggers:

        @ttl_cache(ttl=delay)
        def call(logger_method, message):
            logger_method(message)

        # Store the rate-limited logger function in the loggers dictionary
        loggers[delay] = call

    if logger_method is not None:
        # Call the rate-limited logger function if logger_method is provided
        return loggers[delay](logger_method, msg)
    else:
        # Return the rate-limited logger function for later use
        return loggers[delay]
