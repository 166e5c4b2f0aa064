import dataclasses
import logging

import pytest

from filedrop import CONNECT_ERROR, DECLARE_ERROR
from filedrop.broker import BrokerError
from filedrop.events import FileSystemEvent, OperationKind
from filedrop.processor import EventOutcome, EventProcessor
from filedrop.publisher import PublishResult

from conftest import RecordingPublisher


def created(path):
    return FileSystemEvent(str(path), OperationKind.CREATE)


def test_matching_file_is_copied_and_published(config, dirs, publisher):
    watch_root, copy_to = dirs
    (watch_root / "sub").mkdir()
    source = watch_root / "sub" / "out.csv"
    source.write_bytes(b"0123456789")

    outcome = EventProcessor(config, publisher).process(created(source))

    assert outcome is EventOutcome.PUBLISHED
    assert (copy_to / "out.csv").read_bytes() == b"0123456789"
    assert publisher.messages == [("files", b'{"fileName":"out.csv"}')]


@pytest.mark.parametrize("name", ["notes.txt", "data.csv.bak", "reportcsv"])
def test_other_extensions_are_ignored(config, dirs, publisher, caplog, name):
    watch_root, copy_to = dirs
    source = watch_root / name
    source.write_bytes(b"payload")
    caplog.set_level(logging.INFO, logger="filedrop")

    outcome = EventProcessor(config, publisher).process(created(source))

    assert outcome is EventOutcome.UNHANDLED
    assert list(copy_to.iterdir()) == []
    assert publisher.messages == []
    assert f"Unhandled event: CREATE on file: {name}" in caplog.text


def test_extension_is_a_plain_suffix(config, dirs, publisher):
    watch_root, copy_to = dirs
    globbed = dataclasses.replace(config, extension="*.csv")
    source = watch_root / "a.csv"
    source.write_bytes(b"x")

    outcome = EventProcessor(globbed, publisher).process(created(source))

    assert outcome is EventOutcome.UNHANDLED
    assert publisher.messages == []


@pytest.mark.parametrize(
    "kind",
    [
        OperationKind.WRITE,
        OperationKind.REMOVE,
        OperationKind.RENAME,
        OperationKind.CHMOD,
        OperationKind.OTHER,
    ],
)
def test_non_create_operations_are_unhandled(config, dirs, publisher, caplog, kind):
    watch_root, copy_to = dirs
    source = watch_root / "out.csv"
    source.write_bytes(b"0123456789")
    caplog.set_level(logging.INFO, logger="filedrop")

    outcome = EventProcessor(config, publisher).process(FileSystemEvent(str(source), kind))

    assert outcome is EventOutcome.UNHANDLED
    assert not (copy_to / "out.csv").exists()
    assert publisher.messages == []
    assert f"Unhandled event: {kind.value} on file: out.csv" in caplog.text


def test_empty_file_is_not_published(config, dirs, publisher):
    watch_root, copy_to = dirs
    source = watch_root / "empty.csv"
    source.touch()

    outcome = EventProcessor(config, publisher).process(created(source))

    assert outcome is EventOutcome.EMPTY
    assert publisher.messages == []


def test_vanished_file_is_logged_as_error_and_skipped(config, dirs, publisher, caplog):
    watch_root, _ = dirs
    caplog.set_level(logging.INFO, logger="filedrop")

    outcome = EventProcessor(config, publisher).process(created(watch_root / "gone.csv"))

    assert outcome is EventOutcome.COPY_FAILED
    assert publisher.messages == []
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert "gone.csv" in errors[0].getMessage()


def test_directory_with_matching_name_is_not_copied(config, dirs, publisher):
    watch_root, _ = dirs
    folder = watch_root / "archive.csv"
    folder.mkdir()

    outcome = EventProcessor(config, publisher).process(created(folder))

    assert outcome is EventOutcome.COPY_FAILED
    assert publisher.messages == []


def test_copy_inside_watched_tree_is_not_overwritten(config, dirs, publisher):
    watch_root, _ = dirs
    nested = dataclasses.replace(config, copy_to=str(watch_root))
    copied = watch_root / "out.csv"
    copied.write_bytes(b"0123456789")

    outcome = EventProcessor(nested, publisher).process(created(copied))

    assert outcome is EventOutcome.COPY_FAILED
    assert copied.read_bytes() == b"0123456789"
    assert publisher.messages == []


def test_publish_failure_aborts_by_default(config, dirs):
    watch_root, _ = dirs
    source = watch_root / "out.csv"
    source.write_bytes(b"data")
    failing = RecordingPublisher(PublishResult(CONNECT_ERROR, "connection refused", True))

    with pytest.raises(BrokerError) as excinfo:
        EventProcessor(config, failing).process(created(source))

    assert excinfo.value.code == CONNECT_ERROR
    assert excinfo.value.retryable is True
    assert "Failed to connect to RabbitMQ: connection refused" == str(excinfo.value)


def test_publish_failure_policy_can_be_replaced(config, dirs):
    watch_root, _ = dirs
    source = watch_root / "out.csv"
    source.write_bytes(b"data")
    result = PublishResult(DECLARE_ERROR, "PRECONDITION_FAILED", False)
    seen = []

    processor = EventProcessor(config, RecordingPublisher(result), on_publish_failure=seen.append)
    outcome = processor.process(created(source))

    assert outcome is EventOutcome.PUBLISH_FAILED
    assert seen == [result]
