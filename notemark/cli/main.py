"""Main CLI entry point for the notemark command.

The worker process runs here: ``convert`` renders a single job file, and
``process`` drains a directory (or JSON Lines file) of jobs through the
queue, handler and filesystem store.
"""

import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import typer

from notemark.blocks.errors import MalformedDocumentError
from notemark.cli.models import ExitCode
from notemark.cli.output import OutputHandler
from notemark.config.config_loader import ConfigLoader
from notemark.config.errors import ConfigError, ConfigFilesystemError
from notemark.config.models import WorkerConfig
from notemark.content_converter.document_assembler import DocumentAssembler
from notemark.jobs.errors import InvalidPayloadError
from notemark.jobs.handler import ConversionJobHandler
from notemark.jobs.models import ConversionJob, JobKind, JobResult
from notemark.jobs.queue import InMemoryJobQueue
from notemark.jobs.worker import ConversionWorker
from notemark.storage.filesystem_store import FilesystemStore

app = typer.Typer(
    name="notemark",
    help="""Convert note block trees to Markdown.

EXAMPLES:
  notemark convert job.json                      # Print Markdown for one job
  notemark convert job.json --output note.md     # Write it to a file
  notemark process ./jobs --output-dir ./out     # Run every job in a directory""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _log_handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT))
    return handler


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Route the notemark logger to stderr and, optionally, a log file.

    Args:
        verbosity: -v count; 0 logs warnings, 1 adds job progress, 2+ debug
        logdir: Directory for a ``notemark_<timestamp>.log`` file
    """
    level = LOG_LEVELS[min(max(verbosity, 0), len(LOG_LEVELS) - 1)]

    app_logger = logging.getLogger("notemark")
    app_logger.setLevel(level)
    app_logger.handlers.clear()
    app_logger.addHandler(
        _log_handler(logging.StreamHandler(sys.stderr), level, "%(levelname)s %(message)s")
    )

    if not logdir:
        return

    Path(logdir).mkdir(parents=True, exist_ok=True)
    log_file = Path(logdir) / f"notemark_{datetime.now():%Y%m%d_%H%M%S}.log"
    app_logger.addHandler(
        _log_handler(
            logging.FileHandler(log_file, encoding="utf-8"),
            level,
            "%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    )
    logger.info(f"Logging to file: {log_file}")


def _load_config(config_path: Optional[str], output_dir: Optional[str]) -> WorkerConfig:
    """Build the worker config: file (if any), then environment, then flags."""
    base = ConfigLoader.load(config_path) if config_path else None
    config = ConfigLoader.from_env(base)
    if output_dir:
        config.output_dir = output_dir
    return config


def _read_job_bodies(jobs_path: str) -> List[Tuple[str, str]]:
    """Read raw job bodies as (message id, JSON text) pairs.

    A directory contributes every ``*.json`` file (sorted by name, id = file
    stem); a ``.jsonl`` file contributes every non-blank line.

    Raises:
        OSError: If the path cannot be read
    """
    path = Path(jobs_path)
    if path.is_dir():
        return [
            (job_file.stem, job_file.read_text(encoding="utf-8"))
            for job_file in sorted(path.glob("*.json"))
        ]

    bodies = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if line.strip():
                bodies.append((f"{path.stem}-{line_number}", line))
    return bodies


def _final_results(results: List[JobResult]) -> List[JobResult]:
    """Keep the last delivery's result for each message, in first-seen order."""
    final: Dict[str, JobResult] = {}
    for result in results:
        final[result.message_id] = result
    return list(final.values())


@app.command()
def convert(
    job_file: str = typer.Argument(..., help="Conversion job JSON file"),
    output_path: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write Markdown here instead of stdout"
    ),
    verbosity: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Render one conversion job to Markdown."""
    _configure_logging(verbosity)
    output = OutputHandler(verbosity=verbosity, no_color=no_color, stderr=True)

    try:
        with open(job_file, "r", encoding="utf-8") as f:
            body = f.read()
    except OSError as e:
        output.error(f"Cannot read {job_file}: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        job = ConversionJob.from_payload(body)
        if job.kind != JobKind.CONVERT_TO_MARKDOWN:
            raise InvalidPayloadError(f"cannot convert a {job.kind.value} job", "type")
        result = DocumentAssembler().assemble(job.blocks, job.metadata)
    except (InvalidPayloadError, MalformedDocumentError) as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.JOB_FAILURES)

    output.print_warnings(result.warnings)

    if output_path:
        try:
            with open(output_path, "w", encoding="utf-8", newline="") as f:
                f.write(result.markdown)
        except OSError as e:
            output.error(f"Cannot write {output_path}: {e}")
            raise typer.Exit(ExitCode.GENERAL_ERROR)
        output.success(f"Wrote {output_path}")
    else:
        typer.echo(result.markdown, nl=False)

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def process(
    jobs_path: str = typer.Argument(..., help="Directory of *.json jobs or a .jsonl file"),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Worker configuration YAML file"
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output-dir", help="Output store directory (overrides config)"
    ),
    logdir: Optional[str] = typer.Option(
        None, "--logdir", help="Directory for timestamped log files"
    ),
    verbosity: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Run every job in JOBS_PATH through the queue until it drains."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = _load_config(config_path, output_dir)
        bodies = _read_job_bodies(jobs_path)
    except (ConfigError, ConfigFilesystemError) as e:
        output.error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except OSError as e:
        output.error(f"Cannot read jobs from {jobs_path}: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.debug(f"Configuration: {config}")

    queue = InMemoryJobQueue()
    for message_id, body in bodies:
        queue.enqueue(body, message_id)
    output.info(f"Queued {len(bodies)} job(s), writing to {os.path.abspath(config.output_dir)}")

    store = FilesystemStore(config.output_dir)
    worker = ConversionWorker(ConversionJobHandler(store, config), config)

    try:
        results = asyncio.run(worker.run_until_empty(queue))
    except Exception as e:
        logger.exception("Unexpected error while processing jobs")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    final = _final_results(results)
    for result in final:
        if result.warnings:
            output.print_warnings(result.warnings)
    output.print_summary(final)

    if any(result.is_permanent_failure for result in final):
        raise typer.Exit(ExitCode.JOB_FAILURES)
    raise typer.Exit(ExitCode.SUCCESS)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
