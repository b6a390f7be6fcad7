"""Console rendering of jobs, task lists and cycle reports."""

from __future__ import annotations

from collections.abc import Sequence

from rich.table import Table

from insightboard import log
from insightboard.status import explain_block, status_counts
from insightboard.tasks.model import Job, JobStatus, Task, TaskStatus

_STATUS_STYLE: dict[TaskStatus, str] = {
    TaskStatus.READY: "green",
    TaskStatus.BLOCKED: "yellow",
    TaskStatus.ERROR: "red",
    TaskStatus.COMPLETED: "dim",
}

_JOB_STYLE: dict[JobStatus, str] = {
    JobStatus.PENDING: "dim",
    JobStatus.PROCESSING: "cyan",
    JobStatus.COMPLETED: "green",
    JobStatus.FAILED: "red",
}


def _rule() -> None:
    log.console.print("[bold]============================================[/bold]")


def show_tasks(tasks: Sequence[Task]) -> None:
    table = Table(show_edge=False, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Depends on")
    table.add_column("Description")
    table.add_column("Note", style="dim")

    for t in tasks:
        style = _STATUS_STYLE.get(t.status, "")
        note = explain_block(tasks, t.id) if t.status in (TaskStatus.BLOCKED, TaskStatus.ERROR) else ""
        table.add_row(
            t.id,
            f"[{style}]{t.status.value}[/{style}]",
            t.priority.value,
            ", ".join(t.dependencies) or "-",
            t.description,
            note,
        )
    log.console.print(table)

    counts = status_counts(tasks)
    summary = " ".join(f"{s.value}:{n}" for s, n in counts.items() if n)
    if summary:
        log.console.print(f"[dim]{summary}[/dim]")


def show_cycles(cycle_details: Sequence[str]) -> None:
    if not cycle_details:
        return
    log.console.print("")
    log.console.print("[bold red]>>> Circular dependencies[/bold red]")
    for trace in cycle_details:
        log.console.print(f"  - {trace}")


def show_job(job: Job) -> None:
    style = _JOB_STYLE.get(job.status, "")
    _rule()
    log.console.print(f"Job: [cyan]{job.job_id}[/cyan]")
    log.console.print(f"Status: [{style}]{job.status.value}[/{style}]")
    if job.created_at:
        log.console.print(f"Created: {job.created_at}")

    if job.status == JobStatus.COMPLETED:
        if job.completed_at:
            log.console.print(f"Completed: {job.completed_at}")
        _rule()
        if job.tasks:
            show_tasks(job.tasks)
        else:
            log.console.print("[dim]No tasks extracted.[/dim]")
        show_cycles(job.cycle_details)
    elif job.status == JobStatus.FAILED:
        log.console.print(f"[red]Error:[/red] {job.error_message or 'unknown error'}")
    _rule()


def show_jobs(jobs: Sequence[Job]) -> None:
    if not jobs:
        log.info("No jobs yet.")
        return
    table = Table(show_edge=False, header_style="bold")
    table.add_column("Job", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Tasks", justify="right")
    table.add_column("Cycles")
    table.add_column("Created")
    table.add_column("Completed")
    for job in jobs:
        style = _JOB_STYLE.get(job.status, "")
        table.add_row(
            job.job_id,
            f"[{style}]{job.status.value}[/{style}]",
            str(len(job.tasks)),
            "yes" if job.has_cycles else "no",
            job.created_at or "-",
            job.completed_at or "-",
        )
    log.console.print(table)
