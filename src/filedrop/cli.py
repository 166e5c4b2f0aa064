import logging
import signal
import sys
import threading
from pathlib import Path
from typing import NoReturn, Optional

import typer
from typing_extensions import Annotated

from filedrop import ERRORS, __app_name__, __description__, __version__
from filedrop.broker import BrokerError
from filedrop.config import DEFAULT_CONFIG_PATH, ConfigError, Configuration, load_config
from filedrop.consumer import Consumer
from filedrop.processor import EventProcessor
from filedrop.publisher import RabbitPublisher
from filedrop.registrar import WatchSetupError
from filedrop.watcher import Watcher

app = typer.Typer(help=__description__)
logger = logging.getLogger(__app_name__)

ConfigOption = Annotated[
    Path, typer.Option("--config", "-c", help="Path to the YAML configuration file.")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Also log debug messages.")]


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def configure_logging(verbose: bool = False) -> None:
    """Send routine logs to stdout and warnings or worse to stderr."""
    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.addFilter(_BelowWarning())
    err_handler = logging.StreamHandler(sys.stderr)
    err_handler.setLevel(logging.WARNING)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[out_handler, err_handler],
        force=True,
    )


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _load(config_path: Path) -> Configuration:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        _fail(f"Loading config failed with {ERRORS[exc.code]} {exc}")


@app.command()
def watch(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    verbose: VerboseOption = False,
) -> None:
    """Copy newly created files to copy_to and publish their names"""
    configure_logging(verbose)
    config = _load(config_path)

    processor = EventProcessor(config, RabbitPublisher(config.broker))
    watcher = Watcher(config, processor)
    stop_event = threading.Event()

    def _signal_handler(signum, frame):
        logger.info("Received signal %s, shutting down.", signum)
        stop_event.set()

    previous = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    for sig in previous:
        signal.signal(sig, _signal_handler)

    try:
        watcher.start()
        watcher.run(stop_event)
    except WatchSetupError as exc:
        _fail(f"Watching {config.path} failed with {ERRORS[exc.code]} {exc}")
    except BrokerError as exc:
        _fail(str(exc))
    finally:
        watcher.close()
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@app.command()
def consume(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    verbose: VerboseOption = False,
) -> None:
    """Log every message published on the configured queue"""
    configure_logging(verbose)
    config = _load(config_path)
    try:
        Consumer(config).run()
    except BrokerError as exc:
        _fail(str(exc))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{__app_name__} version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show the application's version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Bridge files dropped into a directory tree onto a RabbitMQ queue."""
    return
