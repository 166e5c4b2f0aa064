"""Connection and queue declaration shared by the publisher and the consumer.

Both sides must declare the queue with identical parameters, otherwise the
broker refuses the second declaration and closes the channel.
"""

from __future__ import annotations

import pika
from pika.exceptions import (
    AMQPConnectionError,
    AMQPError,
    ChannelClosedByBroker,
    ProbableAccessDeniedError,
    ProbableAuthenticationError,
)

from filedrop import ERRORS

CONTENT_TYPE = "application/json"
DEFAULT_EXCHANGE = ""


class BrokerError(Exception):
    """A connect, channel, declare, publish or consume failure."""

    def __init__(self, code: int, detail: str = "", retryable: bool = False) -> None:
        super().__init__(code, detail, retryable)
        self.code = code
        self.detail = detail
        self.retryable = retryable

    def __str__(self) -> str:
        return f"{ERRORS[self.code]}: {self.detail}"


def connect(uri: str) -> pika.BlockingConnection:
    """Open a blocking connection from an ``amqp://`` URI."""
    return pika.BlockingConnection(pika.URLParameters(uri))


def declare_queue(channel, name: str):
    """Declare ``name`` as a durable, shared, persistent queue (idempotent)."""
    return channel.queue_declare(
        queue=name,
        passive=False,
        durable=True,
        exclusive=False,
        auto_delete=False,
        arguments=None,
    )


def describe(exc: BaseException) -> str:
    return str(exc) or repr(exc)


def is_retryable(exc: BaseException) -> bool:
    """Tell transient broker failures apart from ones a retry cannot fix."""
    if isinstance(exc, (ProbableAuthenticationError, ProbableAccessDeniedError)):
        return False
    if isinstance(exc, ChannelClosedByBroker):
        # Declare mismatch, missing permission or similar.
        return False
    if isinstance(exc, AMQPConnectionError):
        return True
    if isinstance(exc, AMQPError):
        return True
    return False
