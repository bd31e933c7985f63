"""Logging setup shared by the server, the chunk store and the CLI."""

import logging
import os
import re
import sys
from typing import Optional, TextIO

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_MASK = r'\1***MASKED***'


class SensitiveDataFilter(logging.Filter):
    """Replace credential-looking values in messages and their arguments."""

    PATTERNS = [
        re.compile(r'((?:password|token|authorization)["\']?\s*[:=]\s*["\']?)([^"\'}\s,]+)', re.IGNORECASE),
        re.compile(r'(bearer\s+)([^\s,}\'\"]+)', re.IGNORECASE),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._mask(record.msg)
        if isinstance(record.args, dict):
            record.args = {key: self._mask(value) for key, value in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._mask(arg) for arg in record.args)
        return True

    def _mask(self, value):
        if not isinstance(value, str):
            return value
        for pattern in self.PATTERNS:
            value = pattern.sub(_MASK, value)
        return value


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a single handler to the logger of a top-level package.

    Modules log through ``get_logger(__name__)``, so everything under
    'uploader', 'chunkstore' or 'cli' reaches the handler installed here.
    Calling it again for the same component only updates the level.

    Args:
        component_name: Top-level package name
        log_level: DEBUG, INFO, WARNING or ERROR (default: LOG_LEVEL env var, then INFO)
        stream: Output stream (default: stdout)

    Returns:
        The component logger
    """
    level_name = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
