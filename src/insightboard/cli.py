"""InsightBoard CLI: submit transcripts, inspect jobs, complete tasks.

Installed as ``insightboard`` console_script.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from insightboard import __version__
from insightboard.config import Config
from insightboard.io_utils import read_text

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

# Not-found is kept apart from other failures so scripts can tell them apart.
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 3


def _service(cfg: Config, *, with_engine: bool = False):
    from insightboard.engines.registry import get_engine
    from insightboard.jobs import JobService
    from insightboard.store import JobStore

    engine = get_engine(cfg.ai_engine) if with_engine else None
    return JobService(JobStore(cfg.store_dir), engine, timeout=cfg.engine_timeout)


def _read_transcript(text: str, file: str) -> str:
    if text and file:
        raise click.UsageError("Pass the transcript as TEXT or --file, not both.")
    if file:
        return read_text(Path(file))
    if text:
        return text
    stdin = click.get_text_stream("stdin")
    if stdin.isatty():
        raise click.UsageError("No transcript given. Pass TEXT, --file PATH, or pipe it on stdin.")
    return stdin.read()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--store-dir", default="", help="Job store directory (default: artifacts/jobs)")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="insightboard")
@click.pass_context
def main(ctx: click.Context, store_dir: str, verbose: bool) -> None:
    """InsightBoard — turn meeting transcripts into a dependency-checked task board.

    \b
    WORKFLOW:
      1. Submit:    insightboard submit --file meeting.txt
      2. Inspect:   insightboard status <job-id>
      3. Progress:  insightboard complete <job-id> task-1
    """
    from insightboard import log as ilog

    ilog.set_verbose(verbose)
    ctx.obj = Config(store_dir=store_dir, verbose=verbose)


# ── Subcommand: submit ───────────────────────────────────────────


@main.command()
@click.argument("text", required=False, default="")
@click.option("--file", "-f", "file", default="", type=click.Path(exists=True, dir_okay=False), help="Read the transcript from a file")
@click.option("--engine", "engine_name", default="", help="Extraction engine (claude, gemini)")
@click.option("--timeout", type=int, default=0, help="Engine timeout in seconds")
@click.option("--json", "as_json", is_flag=True, help="Print the job as JSON")
@click.pass_obj
def submit(cfg: Config, text: str, file: str, engine_name: str, timeout: int, as_json: bool) -> None:
    """Extract tasks from a transcript and validate their dependency graph.

    Submitting the same transcript again returns the existing job.
    """
    from insightboard import log as ilog
    from insightboard.engines.registry import ENGINE_NAMES
    from insightboard.errors import UpstreamFailure, ValidationError
    from insightboard.report import show_job

    transcript = _read_transcript(text, file)

    if engine_name:
        if engine_name.lower() not in ENGINE_NAMES:
            raise click.BadParameter(
                f"Unknown engine: {engine_name}. Valid engines: {', '.join(ENGINE_NAMES)}.",
                param_hint="--engine",
            )
        cfg.ai_engine = engine_name.lower()
    if timeout > 0:
        cfg.engine_timeout = timeout

    service = _service(cfg, with_engine=True)
    assert service.engine is not None
    err = service.engine.check_available()
    if err:
        ilog.error(err)
        sys.exit(EXIT_FAILURE)

    try:
        job, cached = service.submit(transcript)
    except ValidationError as exc:
        ilog.error(f"Invalid input: {exc}")
        sys.exit(EXIT_FAILURE)
    except UpstreamFailure as exc:
        ilog.error(f"Extraction failed ({exc.kind}): {exc}")
        sys.exit(EXIT_FAILURE)

    if as_json:
        click.echo(json.dumps({**job.to_dict(), "cached": cached}, indent=2, ensure_ascii=False))
        return
    if cached:
        ilog.info("This transcript was already processed")
    else:
        ilog.success(f"Job {job.job_id} processed")
    show_job(job)


# ── Subcommand: status ───────────────────────────────────────────


@main.command()
@click.argument("job_id")
@click.option("--json", "as_json", is_flag=True, help="Print the job as JSON")
@click.pass_obj
def status(cfg: Config, job_id: str, as_json: bool) -> None:
    """Show a job's state, and its tasks and cycle report once completed."""
    from insightboard import log as ilog
    from insightboard.errors import JobNotFoundError
    from insightboard.report import show_job

    try:
        job = _service(cfg).get_job(job_id)
    except JobNotFoundError as exc:
        ilog.error(str(exc))
        sys.exit(EXIT_NOT_FOUND)

    if as_json:
        click.echo(json.dumps(job.to_dict(), indent=2, ensure_ascii=False))
        return
    show_job(job)


# ── Subcommand: complete ─────────────────────────────────────────


@main.command()
@click.argument("job_id")
@click.argument("task_id")
@click.option("--json", "as_json", is_flag=True, help="Print the updated tasks as JSON")
@click.pass_obj
def complete(cfg: Config, job_id: str, task_id: str, as_json: bool) -> None:
    """Mark TASK_ID completed and unblock the tasks waiting on it."""
    from insightboard import log as ilog
    from insightboard.errors import JobLockedError, JobNotFoundError, TaskNotFoundError
    from insightboard.report import show_tasks
    from insightboard.tasks.io import dump_tasks

    try:
        job = _service(cfg).complete_task(job_id, task_id)
    except JobNotFoundError as exc:
        ilog.error(str(exc))
        sys.exit(EXIT_NOT_FOUND)
    except TaskNotFoundError as exc:
        ilog.error(f"{exc} (job {job_id})")
        sys.exit(EXIT_NOT_FOUND)
    except JobLockedError as exc:
        ilog.error(str(exc))
        sys.exit(EXIT_FAILURE)

    if as_json:
        click.echo(dump_tasks(job.tasks))
        return
    ilog.success(f"Task {task_id} marked as completed")
    show_tasks(job.tasks)


# ── Subcommand: jobs ─────────────────────────────────────────────


@main.command()
@click.option("--limit", type=int, default=20, help="Number of jobs to show (0 = all)")
@click.pass_obj
def jobs(cfg: Config, limit: int) -> None:
    """List recent jobs, newest first."""
    from insightboard.report import show_jobs

    show_jobs(_service(cfg).list_jobs(limit))


# ── Subcommand: validate ─────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the classified tasks as JSON")
@click.option("--strict", is_flag=True, help="Exit non-zero when cycles are found")
def validate(file: str, as_json: bool, strict: bool) -> None:
    """Check a local JSON task list: drop dangling dependencies, find cycles, classify.

    No engine is involved; FILE holds a JSON array of tasks.
    """
    from insightboard import log as ilog
    from insightboard.errors import ValidationError
    from insightboard.jobs import analyze
    from insightboard.report import show_cycles, show_tasks
    from insightboard.tasks.io import load_task_file

    try:
        raw = load_task_file(Path(file))
    except ValidationError as exc:
        ilog.error(str(exc))
        sys.exit(EXIT_FAILURE)

    tasks, report, removed = analyze(raw)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "tasks": [t.to_dict() for t in tasks],
                    "hasCycles": report.has_cycles,
                    "cycleDetails": report.cycle_details,
                    "removedDependencies": [
                        {"taskId": r.task_id, "dependencyId": r.dependency_id} for r in removed
                    ],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
    else:
        for item in removed:
            ilog.warn(str(item))
        show_tasks(tasks)
        show_cycles(report.cycle_details)
        if not report.has_cycles:
            ilog.success(f"{len(tasks)} task(s), no circular dependencies")

    if strict and report.has_cycles:
        sys.exit(EXIT_FAILURE)
