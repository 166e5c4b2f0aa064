"""Publish file notifications to a RabbitMQ queue."""

from __future__ import annotations

import json
import logging
from typing import Callable, NamedTuple, Protocol

import pika
from pika.exceptions import AMQPError

from filedrop import (
    CHANNEL_ERROR,
    CONNECT_ERROR,
    DECLARE_ERROR,
    PUBLISH_ERROR,
    SUCCESS,
)
from filedrop.broker import (
    CONTENT_TYPE,
    DEFAULT_EXCHANGE,
    BrokerError,
    connect,
    declare_queue,
    describe,
    is_retryable,
)

logger = logging.getLogger(__name__)


class PublishResult(NamedTuple):
    error: int = SUCCESS
    detail: str = ""
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error == SUCCESS


class Publisher(Protocol):
    def publish(self, topic: str, payload: bytes) -> PublishResult:
        ...


def build_message(file_name: str) -> bytes:
    """Serialize the notification body, e.g. ``{"fileName":"report.csv"}``."""
    return json.dumps({"fileName": file_name}, separators=(",", ":")).encode("utf-8")


def abort(result: PublishResult) -> None:
    """Default failure policy: treat every broker failure as fatal."""
    raise BrokerError(result.error, result.detail, result.retryable)


class RabbitPublisher:
    """Publish each message over its own connection and channel.

    Nothing is pooled: the connection is opened, the queue declared, the
    message sent and everything closed again for every call.
    """

    def __init__(self, uri: str, connect: Callable = connect) -> None:
        self._uri = uri
        self._connect = connect

    def publish(self, topic: str, payload: bytes) -> PublishResult:
        connection = None
        channel = None
        stage = CONNECT_ERROR
        try:
            connection = self._connect(self._uri)
            stage = CHANNEL_ERROR
            channel = connection.channel()
            stage = DECLARE_ERROR
            declare_queue(channel, topic)
            stage = PUBLISH_ERROR
            channel.basic_publish(
                exchange=DEFAULT_EXCHANGE,
                routing_key=topic,
                body=payload,
                properties=pika.BasicProperties(content_type=CONTENT_TYPE),
            )
        except (AMQPError, ValueError) as exc:
            return PublishResult(stage, describe(exc), is_retryable(exc))
        finally:
            _close(channel, connection)

        logger.info(" [x] Sent %s", payload.decode("utf-8", errors="replace"))
        return PublishResult()


def _close(channel, connection) -> None:
    try:
        if channel is not None and channel.is_open:
            channel.close()
    except AMQPError as exc:
        logger.warning("Error while closing broker channel: %s", describe(exc))
    finally:
        if connection is not None and connection.is_open:
            try:
                connection.close()
            except AMQPError as exc:
                logger.warning("Error while closing broker connection: %s", describe(exc))
