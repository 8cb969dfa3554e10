import copy
import logging
import logging.config
from typing import Any, Dict, Optional

DEFAULT_LOGGING: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "[%(levelname)s] %(message)s",
        },
        "detailed": {
            "format": (
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: "
                "%(message)s"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "plain",
            "stream": "ext://sys.stderr",
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": "rectab.log",
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8",
        },
    },
    "loggers": {
        "": {
            "handlers": ["console", "file"],
            "level": "INFO",
            "propagate": True,
        },
    },
}


def logging_config(
    debug: bool = False, log_file: Optional[str] = None
) -> Dict[str, Any]:
    """Create the logging configuration.

    Args:
        debug: Log debug messages to the console as well.
        log_file: Where to write the detailed log; without it only the
            console handler is installed.
    """
    result = copy.deepcopy(DEFAULT_LOGGING)
    level = "DEBUG" if debug else "INFO"
    result["handlers"]["console"]["level"] = level
    result["loggers"][""]["level"] = "DEBUG" if (debug or log_file) else level
    if log_file:
        result["handlers"]["file"]["filename"] = log_file
    else:
        del result["handlers"]["file"]
        result["loggers"][""]["handlers"] = ["console"]
    return result


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> None:
    """Apply the logging configuration to the current process."""
    logging.config.dictConfig(logging_config(debug, log_file))
    logging.getLogger(__name__).debug("Logging has been setup")
