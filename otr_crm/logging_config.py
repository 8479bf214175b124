"""
Logging for the back office.

configure_logging() runs once from create_app(). LOG_FORMAT picks the handler
format ("text" for a terminal, "json" for the log shipper) and LOG_LEVEL the
level (default INFO).

Lead code logs identifiers as structured fields instead of baking them into
the message:

    logger.info("Status changed", extra={'lead_id': lead_id, 'status': status})

Both formatters pick up the fields listed in CONTEXT_FIELDS, so a JSON line
can be filtered by lead_id and a text line ends with "lead_id=... status=...".
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Record attributes lifted out of `extra` into the output, in this order
CONTEXT_FIELDS = (
    'lead_id',
    'contact_id',
    'status',
    'previous_status',
    'event',
    'function',
    'channel',
    'note_type',
    'status_code',
)

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
TEXT_DATEFMT = '%Y-%m-%d %H:%M:%S'

# Third-party loggers that are noisy at INFO
_NOISY_LOGGERS = [
    'urllib3',
    'botocore',
    'boto3',
    'PIL',
    'sqlalchemy.engine',
]


def context_of(record):
    """The CONTEXT_FIELDS present on a record, skipping None values."""
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with lead context as top-level keys."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        entry.update(context_of(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text line followed by key=value pairs for any lead context."""

    def __init__(self, fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT):
        super().__init__(fmt, datefmt=datefmt)

    def formatMessage(self, record):
        line = super().formatMessage(record)
        context = context_of(record)
        if not context:
            return line
        pairs = ' '.join(f"{key}={value}" for key, value in context.items())
        return f"{line} [{pairs}]"


def configure_logging(app=None):
    """
    Set up the root logger from LOG_LEVEL / LOG_FORMAT.

    Calling it again replaces the handler rather than adding a second one.
    """
    level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, level_name, logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    log_format = os.getenv('LOG_FORMAT', 'text').lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if log_format == 'json' else ContextTextFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.debug("Logging configured (%s, %s)", log_format, logging.getLevelName(level))
