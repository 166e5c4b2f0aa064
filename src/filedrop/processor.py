"""Classify filesystem events, copy matching files and announce them."""

from __future__ import annotations

import logging
import os
from enum import Enum, auto
from typing import Callable

from filedrop.config import Configuration
from filedrop.copier import CopyError, copy_file
from filedrop.events import FileSystemEvent, OperationKind
from filedrop.publisher import Publisher, PublishResult, abort, build_message

logger = logging.getLogger(__name__)


class EventOutcome(Enum):
    PUBLISHED = auto()
    PUBLISH_FAILED = auto()
    EMPTY = auto()
    COPY_FAILED = auto()
    UNHANDLED = auto()


class EventProcessor:
    """Handle one :class:`FileSystemEvent` at a time.

    Only ``CREATE`` events whose path ends with the configured extension are
    copied, and only a copy of at least one byte is published. A failed
    publish is passed to ``on_publish_failure``; the default policy raises
    :class:`~filedrop.broker.BrokerError`.
    """

    def __init__(
        self,
        config: Configuration,
        publisher: Publisher,
        on_publish_failure: Callable[[PublishResult], None] = abort,
    ) -> None:
        self.config = config
        self.publisher = publisher
        self.on_publish_failure = on_publish_failure

    def wants(self, event: FileSystemEvent) -> bool:
        return event.kind is OperationKind.CREATE and event.path.endswith(self.config.extension)

    def process(self, event: FileSystemEvent) -> EventOutcome:
        file_name = event.file_name
        if not self.wants(event):
            logger.info("Unhandled event: %s on file: %s", event.kind.value, file_name)
            return EventOutcome.UNHANDLED

        destination = os.path.join(self.config.copy_to, file_name)
        try:
            written = copy_file(event.path, destination)
        except CopyError as exc:
            logger.error("ERROR %s", exc)
            return EventOutcome.COPY_FAILED

        if written <= 0:
            logger.info("Not publishing empty file %s", file_name)
            return EventOutcome.EMPTY

        if self.emit(file_name):
            return EventOutcome.PUBLISHED
        return EventOutcome.PUBLISH_FAILED

    def emit(self, file_name: str) -> bool:
        logger.info("Event on file %s", file_name)
        result = self.publisher.publish(self.config.broker_topic, build_message(file_name))
        if not result.ok:
            self.on_publish_failure(result)
        return result.ok
