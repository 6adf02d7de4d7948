import logging
import logging.config
import queue
from enum import Enum
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Any

import uvicorn

from app.core.utils.config import Settings


class ColoredConsoleFormatter(uvicorn.logging.DefaultFormatter):
    class ConsoleColors(str, Enum):
        """Colors can be found here: https://talyian.github.io/ansicolors/"""

        DEBUG = "\033[38;5;12m"
        INFO = "\033[38;5;10m"
        WARNING = "\033[38;5;11m"
        ERROR = "\033[38;5;9m"
        CRITICAL = "\033[38;5;1m"
        BOLD = "\033[1m"
        END = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(datefmt="%d-%b-%y %H:%M:%S")

        self.formatters = {}

        for level in [
            logging.DEBUG,
            logging.INFO,
            logging.WARNING,
            logging.ERROR,
            logging.CRITICAL,
        ]:
            fmt = (
                "%(asctime)s - %(name)s - "
                + self.ConsoleColors.BOLD
                + "%(levelname)s"
                + self.ConsoleColors.END
                + " - "
                + self.ConsoleColors[logging.getLevelName(level)]
                + "%(message)s"
                + self.ConsoleColors.END
            )
            self.formatters[level] = logging.Formatter(fmt, self.datefmt)

    def format(self, record: logging.LogRecord) -> str:
        formatter: logging.Formatter = self.formatters.get(
            record.levelno,
            self.formatters[logging.ERROR],
        )
        return formatter.format(record)


class LogConfig:
    """
    Logging configuration to be set for the server
    We convert this class to a dict to be used by Python logging module.

    Call `LogConfig().initialize_loggers()` to configure the logging ecosystem.
    """

    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # See https://docs.python.org/3/library/logging.config.html#logging-config-dictschema
    def get_config_dict(self, settings: Settings):
        # Settings are passed as a parameter as this function is not called from an endpoint

        MINIMUM_LOG_LEVEL: str = "DEBUG" if settings.LOG_DEBUG_MESSAGES else "INFO"

        return {
            "version": 1,
            # If LOG_DEBUG_MESSAGES is set, we keep existing loggers, including the database and uvicorn ones
            "disable_existing_loggers": not settings.LOG_DEBUG_MESSAGES,
            "formatters": {
                "default": {
                    "format": self.LOG_FORMAT,
                    "datefmt": "%d-%b-%y %H:%M:%S",
                },
                "console_formatter": {
                    "()": "app.core.utils.log.ColoredConsoleFormatter",
                },
            },
            "handlers": {
                # Console handler is always active, even in production
                "console": {
                    "formatter": "console_formatter",
                    "class": "logging.StreamHandler",
                    "level": MINIMUM_LOG_LEVEL,
                },
                # One RotatingFileHandler per log file
                # https://docs.python.org/3/library/logging.handlers.html#logging.handlers.RotatingFileHandler
                "file_errors": {
                    # file_errors receives every error, even the ones already logged elsewhere
                    "formatter": "default",
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": "logs/errors.log",
                    "maxBytes": 1024 * 1024 * 10,  # ~ 10 MB
                    "backupCount": 20,
                    "level": "INFO",
                },
                "file_access": {
                    # file_access receives incoming requests, JWT verifications and issued OAuth tokens
                    "formatter": "default",
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": "logs/access.log",
                    "maxBytes": 1024 * 1024 * 40,  # ~ 40 MB
                    "backupCount": 50,
                    "level": "INFO",
                },
                "file_security": {
                    # file_security receives logins, rejected token requests, code or refresh token replays and role switches
                    "formatter": "default",
                    "class": "logging.handlers.RotatingFileHandler",
                    "filename": "logs/security.log",
                    "maxBytes": 1024 * 1024 * 40,  # ~ 40 MB
                    "backupCount": 50,
                    "level": "INFO",
                },
            },
            "loggers": {
                "root": {
                    "level": "DEBUG",
                    "handlers": ["console"],
                },
                "hemis": {
                    "propagate": False,
                },
                "hemis.access": {
                    "handlers": [
                        "file_access",
                        "console",
                    ],
                    "level": MINIMUM_LOG_LEVEL,
                },
                "hemis.security": {
                    "handlers": [
                        "file_security",
                        "console",
                    ],
                    "level": MINIMUM_LOG_LEVEL,
                },
                # hemis.error logs every error which does not belong to a more specific logger
                "hemis.error": {
                    "handlers": [
                        "file_errors",
                        "console",
                    ],
                    "level": MINIMUM_LOG_LEVEL,
                },
                # "uvicorn.access" is replaced by "hemis.access" which adds the request_id
                "uvicorn.access": {"handlers": []},
                "uvicorn.error": {
                    "handlers": [
                        "file_errors",
                        "console",
                    ],
                    "level": MINIMUM_LOG_LEVEL,
                    "propagate": False,
                },
            },
        }

    def initialize_loggers(self, settings: Settings):
        """
        Initialize the logging ecosystem from the dict configuration.

        Endpoints log from the event loop. To keep file writes out of it, every handler is
        moved behind a QueueHandler and processed by a QueueListener in its own thread.
        """
        # https://rob-blackbourn.medium.com/how-to-use-python-logging-queuehandler-with-dictconfig-1e8b1284e27a

        # File handlers can not create the logs/ folder themselves
        Path("logs/").mkdir(parents=True, exist_ok=True)

        config_dict = self.get_config_dict(settings=settings)
        logging.config.dictConfig(config_dict)

        loggers = [logging.getLogger(name) for name in config_dict["loggers"]]

        for logger in loggers:
            if len(logger.handlers) == 0:
                continue

            log_queue: queue.Queue[Any] = queue.Queue(-1)

            queue_handler = QueueHandler(log_queue)

            listener = QueueListener(
                log_queue,
                *logger.handlers,
                respect_handler_level=True,
            )
            listener.start()

            logger.handlers = []
            logger.addHandler(queue_handler)
