"""CLI commands for managing assignments."""

from __future__ import annotations

import asyncio
import datetime

import marginalia.lib.cli as click
from marginalia.assignment.code import format_code
from marginalia.core import di
from marginalia.model import AssignmentCategory, Difficulty
from marginalia.pipeline import AssignmentService, SubmissionQueries


@click.group("assignment")
def assignment():
    """Manage assignments."""
    ...


@assignment.command("create")
@click.option("--title", "-t", required=True)
@click.option("--deadline", "-d", required=True, type=click.InstantParamType(), help="ISO-8601; naive means UTC")
@click.option("--description", default="")
@click.option("--requirement", "-r", "requirements", multiple=True, help="may be given more than once")
@click.option("--recommendation", "-R", "recommendations", multiple=True, help="may be given more than once")
@click.option("--category", "-c", type=click.EnumType(AssignmentCategory), default=AssignmentCategory.Programming.value)
@click.option("--difficulty", type=click.EnumType(Difficulty), default=Difficulty.Intermediate.value)
@click.option("--allow-resubmission", is_flag=True, default=False)
@click.option("--inactive", is_flag=True, default=False, help="create without accepting submissions yet")
@di.inject
def assignment_create(
    title: str,
    deadline: datetime.datetime,
    description: str,
    requirements: tuple[str, ...],
    recommendations: tuple[str, ...],
    category: AssignmentCategory,
    difficulty: Difficulty,
    allow_resubmission: bool,
    inactive: bool,
    service: AssignmentService = di.Provide["pipeline.assignments"],
) -> None:
    """Create an assignment and print its code."""
    created = asyncio.run(
        service.create_assignment(
            title=title,
            deadline=deadline,
            description=description,
            requirements=requirements,
            recommendations=recommendations,
            category=category,
            difficulty=difficulty,
            active=not inactive,
            allow_resubmission=allow_resubmission,
        )
    )
    click.echo(click.style(format_code(created.code), bold=True))


@assignment.command("list")
@click.option("--active/--inactive", default=None, help="only active, or only inactive, assignments")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=50)
@di.inject
def assignment_list(
    active: bool | None,
    limit: int,
    queries: SubmissionQueries = di.Provide["pipeline.queries"],
) -> None:
    """List assignments by deadline."""
    summaries = asyncio.run(queries.list_assignments("", active=active, limit=limit))
    if not summaries:
        click.echo("no assignments")
        return

    for s in summaries:
        a = s.assignment
        flags = [] if a.active else [click.style("inactive", fg="yellow")]
        if a.allow_resubmission:
            flags.append("resubmittable")
        click.echo(
            f"{format_code(a.code)}  {a.deadline.isoformat(timespec='minutes')}  "
            f"{s.submission_count:>4} submitted  {a.category.value:<11}  {a.title}"
            + (f"  [{', '.join(flags)}]" if flags else "")
        )


@assignment.command("deactivate")
@click.argument("code")
@di.inject
def assignment_deactivate(
    code: str,
    service: AssignmentService = di.Provide["pipeline.assignments"],
) -> None:
    """Stop accepting submissions for CODE."""
    updated = asyncio.run(service.deactivate(code))
    click.echo(f"deactivated {format_code(updated.code)}: {updated.title}")
