from __future__ import annotations

import logging

from drift_client.core.security import redact_secrets


class RedactionFilter(logging.Filter):
    """Masks API keys and bearer tokens in the rendered log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        redacted = redact_secrets(rendered)
        if redacted != rendered:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: str) -> None:
    """Configure root logging for an application embedding the client.

    The filter goes on the root handlers, since logger-level filters do not
    see records propagated from the ``drift_client.*`` loggers.
    """

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in root.handlers:
        if not any(isinstance(item, RedactionFilter) for item in handler.filters):
            handler.addFilter(RedactionFilter())
