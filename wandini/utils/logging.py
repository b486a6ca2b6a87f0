"""
Logging setup for the orchestrator.

On Cloud Run (``K_SERVICE`` set) records go through google-cloud-logging,
which turns ``extra={"json_fields": ...}`` into structured payload fields.
Locally, `LocalFormatter` renders the same fields inline so a job's order id
and step stay visible in plain stdout output.
"""

import json
import logging
import os
import sys

from wandini import config

_logging_configured = False

# Keys lifted out of json_fields into the bracketed prefix
_PREFIX_KEYS = ("order_id", "step")


class LocalFormatter(logging.Formatter):
    """
    Render job context for stdout.

    ``order_id`` and ``step`` become a ``[order=... step=...]`` prefix on the
    message; any remaining ``json_fields`` are appended as sorted JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        json_fields = dict(getattr(record, "json_fields", None) or {})
        if not json_fields:
            return message

        prefix = " ".join(
            f"{'order' if key == 'order_id' else key}={json_fields.pop(key)}"
            for key in _PREFIX_KEYS
            if key in json_fields
        )
        if prefix:
            message = f"[{prefix}] {message}"
        if json_fields:
            message = f"{message} {json.dumps(json_fields, default=str, sort_keys=True)}"
        return message


def resolve_level(level: int | str | None = None) -> int:
    """Map a level name or number to a logging level, defaulting to LOG_LEVEL."""
    if level is None:
        level = config.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(service_name: str = config.SERVICE_NAME, level: int | str | None = None):
    """
    Configure root logging once per process.

    Args:
        service_name: Name reported when Cloud Logging is attached
        level: Root log level; ``LOG_LEVEL`` from the environment when omitted
    """
    global _logging_configured

    if _logging_configured:
        return

    resolved = resolve_level(level)

    if os.getenv("K_SERVICE"):
        _setup_cloud_logging(service_name, resolved)
    else:
        _setup_local_logging(resolved)

    _logging_configured = True


def _setup_cloud_logging(service_name: str, level: int):
    try:
        import google.cloud.logging

        client = google.cloud.logging.Client()
        client.setup_logging(log_level=level)

        logging.info("Cloud Logging configured for service: %s", service_name)
    except Exception as e:
        # No credentials or API access; stdout is still collected by Cloud Run
        _setup_local_logging(level)
        logging.warning("Failed to setup Cloud Logging, using local logging: %s", e)


def _setup_local_logging(level: int):
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        LocalFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
