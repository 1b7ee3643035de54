"""This module contains class KeyValContextLogger - a logging.LoggerAdapter rendering records as key-value pairs"""

import logging
import sys
from typing import Any, Tuple

RESERVED_KWARGS = ("exc_info", "extra", "stack_info", "stacklevel")


class KeyValContextLogger(logging.LoggerAdapter):
    """
    LoggerAdapter that renders every message as `event="..." key="value" ...` and appends the bound context
    (e.g. the number of the input command being processed) to each record
    """

    def __init__(self, logger, **context):
        super(KeyValContextLogger, self).__init__(logger, extra=context)

    def bind(self, **context) -> None:
        """
        Replace the context appended to subsequent records

        :param context: key-value pairs to append

        """
        self.extra = dict(context)

    def process(self, message, kwargs) -> Tuple[str, dict[str, Any]]:
        """
        Format the log message as key-value pairs. Keyword arguments understood by logging.Logger are passed
        through untouched, all others become fields of the message.

        :param message: logging message, rendered as the `event` field
        :param kwargs: keyword arguments
        :returns: tuple of key-value formatted message and dict of reserved kwargs
        """
        reserved_kwargs = {k: kwargs.pop(k) for k in RESERVED_KWARGS if k in kwargs}
        fields = dict(event=message)
        fields.update(kwargs)
        fields.update(self.extra or {})
        return " ".join(f'{k}="{v}"' for (k, v) in fields.items()), reserved_kwargs

    def error(self, msg, *args, **kwargs) -> None:
        """
        Log at ERROR level. While an exception is being handled, its type and message are added as fields
        and the traceback is attached.

        :param msg: error log message
        :param args: additional positional arguments to be delegated to super
        :param kwargs: keyword arguments to be delegated to super

        """
        _type, _value, _traceback = sys.exc_info()
        if _type is None:
            super(KeyValContextLogger, self).error(msg, *args, **kwargs)
            return
        kwargs["error_type"] = _type.__name__
        kwargs["error_message"] = _value
        super(KeyValContextLogger, self).exception(msg, *args, **kwargs)

    def exception(self, msg, *args, exc_info=False, **kwargs):
        """
        Delegates to method error of self

        :param msg: log message
        :param args: additional positional arguments to be delegated
        :param exc_info:  (Default value = False) Ignored
        :param kwargs: keyword arguments to be delegated

        """
        self.error(msg, *args, **kwargs)
