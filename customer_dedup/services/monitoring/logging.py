"""
Structured JSON Logging
Configures stdlib logging with a JSON formatter and structlog with a JSON renderer
"""

import logging
import sys
import structlog
from pythonjsonlogger import jsonlogger

from customer_dedup.config import settings

SERVICE_NAME = "customer-duplicate-detection"


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that tags every record with service and environment.
    """

    def add_fields(self, log_record, record, message_dict):
        """
        Add custom fields to log record.

        Adds:
        - service: Application name for multi-service environments
        - environment: Deployment environment (development/production)
        """
        super().add_fields(log_record, record, message_dict)

        log_record['service'] = SERVICE_NAME
        log_record['environment'] = settings.environment


def setup_logging(level=None):
    """
    Configure structured JSON logging to stdout.

    Sets up:
    - Root logger with ServiceJsonFormatter on a stdout StreamHandler
    - structlog with ISO timestamps, log level and JSON rendering

    Calling it again replaces the level but does not add a second handler.

    Args:
        level: Log level name or number (default: settings.log_level)

    Returns:
        logging.Handler: The configured handler (for testing)
    """
    level = level or settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if isinstance(h.formatter, ServiceJsonFormatter)),
        None
    )

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        formatter = ServiceJsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={
                'asctime': 'timestamp',
                'levelname': 'level'
            }
        )
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    return handler
