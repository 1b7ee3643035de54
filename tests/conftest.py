import logging
from io import StringIO

import pytest

from common.logging_adapter import KeyValContextLogger

# src/ is put on sys.path through `pythonpath` in pyproject.toml, matching the run command `python3 src/app.py`


@pytest.fixture
def log_stream():
    return StringIO("")


@pytest.fixture
def string_logger(log_stream):
    formatter = logging.Formatter("level=%(levelname)s logger=%(name)s %(message)s")
    handler = logging.StreamHandler(stream=log_stream)
    handler.setLevel("DEBUG")
    handler.setFormatter(formatter)
    a_logger = logging.getLogger("string_logger")
    a_logger.propagate = False
    a_logger.setLevel("DEBUG")
    a_logger.handlers = [handler]
    return KeyValContextLogger(logger=a_logger)
