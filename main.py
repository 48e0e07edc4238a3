import logging
import sys
import time
from pathlib import Path
from typing import Annotated, Iterable, TextIO, Union

import structlog
import typer

from config import Settings, get_settings, get_settings_for_environment
from csv_io import read_transactions, write_accounts
from engine import Engine
from errors import DecodeError, ExecutionError
from models import RunSummary, Transaction

SHARED_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

# Route structlog through stdlib logging so nothing reaches stdout before the
# command configures its handler.
structlog.configure(
    processors=[
        *SHARED_PROCESSORS,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = typer.Typer(
    name="tx-ledger",
    help="Compute final client balances from a CSV stream of transactions.",
    add_completion=False,
)


def configure_logging(settings: Settings) -> None:
    """Configure structured logging to the diagnostic stream."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        force=True,
    )

    if settings.log_format == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=[*SHARED_PROCESSORS, *renderers],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def process_transactions(
    engine: Engine,
    records: Iterable[Union[Transaction, DecodeError]],
    progress_interval: int = 0,
) -> RunSummary:
    """Feed decoded records to the engine in order, skipping failed rows."""
    summary = RunSummary()
    start_time = time.perf_counter()

    for record in records:
        if isinstance(record, DecodeError):
            summary.decode_failures += 1
            logger.warning("Failed to decode transaction", line=record.line, reason=record.reason)
            continue

        try:
            engine.execute(record)
        except ExecutionError as e:
            summary.execution_failures += 1
            logger.warning(
                "Failed to execute transaction",
                error_code=e.error_code,
                detail=str(e),
                type=record.type,
                account_id=record.account,
                tx_id=record.tx_id,
            )

        summary.processed += 1
        if progress_interval and summary.processed % progress_interval == 0:
            logger.info("Processing transactions", processed=summary.processed)

    summary.duration_seconds = round(time.perf_counter() - start_time, 4)
    summary.accounts_count = engine.accounts_count
    return summary


def run(stream: TextIO, output: TextIO, settings: Settings) -> RunSummary:
    """Process a transaction CSV stream and write the account report to ``output``.

    Raises ``OSError`` if the report cannot be written.
    """
    engine = Engine()
    summary = process_transactions(
        engine,
        read_transactions(stream, settings.amount_scale),
        settings.progress_interval,
    )

    logger.info(
        "Processed transactions",
        processed=summary.processed,
        decode_failures=summary.decode_failures,
        execution_failures=summary.execution_failures,
        accounts=summary.accounts_count,
        disputes_open=engine.disputes_count,
        duration_seconds=summary.duration_seconds,
    )

    write_accounts(engine.accounts(), output, settings.amount_scale)
    return summary


@app.command()
def main(
    input_path: Annotated[Path, typer.Argument(metavar="INPUT", help="CSV file containing transactions")],
) -> None:
    settings = get_settings_for_environment(get_settings().environment)
    configure_logging(settings)

    logger.debug("Starting run", app=settings.app_name, version=settings.app_version, input=str(input_path))

    try:
        stream = open(input_path, newline="", encoding=settings.input_encoding)
    except OSError as e:
        logger.error("Cannot open input file", input=str(input_path), error=str(e))
        raise typer.Exit(code=1)

    with stream:
        run(stream, sys.stdout, settings)


if __name__ == "__main__":
    app()
