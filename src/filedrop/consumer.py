"""Log every message delivered on the configured queue."""

from __future__ import annotations

import logging
from typing import Callable

from pika.exceptions import AMQPError

from filedrop import CHANNEL_ERROR, CONNECT_ERROR, CONSUME_ERROR, DECLARE_ERROR
from filedrop.broker import BrokerError, connect, declare_queue, describe, is_retryable
from filedrop.config import Configuration

logger = logging.getLogger(__name__)


class Consumer:
    """Subscribe with auto-ack and log message bodies until interrupted."""

    def __init__(self, config: Configuration, connect: Callable = connect) -> None:
        self.config = config
        self._connect = connect

    def on_message(self, channel, method, properties, body: bytes) -> None:
        logger.info("Received a message: %s", body.decode("utf-8", errors="replace"))

    def run(self) -> None:
        queue_name = self.config.broker_topic
        connection = None
        stage = CONNECT_ERROR
        try:
            connection = self._connect(self.config.broker)
            stage = CHANNEL_ERROR
            channel = connection.channel()
            stage = DECLARE_ERROR
            declare_queue(channel, queue_name)
            stage = CONSUME_ERROR
            channel.basic_consume(
                queue=queue_name,
                on_message_callback=self.on_message,
                auto_ack=True,
            )

            logger.info(" [*] Waiting for messages. To exit press CTRL+C")
            try:
                channel.start_consuming()
            except KeyboardInterrupt:
                channel.stop_consuming()
                logger.info(" [*] Stopped consuming")
        except (AMQPError, ValueError) as exc:
            raise BrokerError(stage, describe(exc), is_retryable(exc)) from exc
        finally:
            if connection is not None and connection.is_open:
                connection.close()
