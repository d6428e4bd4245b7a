"""CLI commands for inspecting submissions."""

from __future__ import annotations

import asyncio

import marginalia.lib.cli as click
from marginalia.core import di
from marginalia.model import SubmissionState
from marginalia.pipeline import FeedbackPipeline
from marginalia.pipeline.pipeline import parse_submission_id


@click.group("submission")
def submission():
    """Inspect submissions and their feedback."""
    ...


@submission.command("regenerate")
@click.argument("submission_id")
@di.inject
def submission_regenerate(
    submission_id: str,
    pipeline: FeedbackPipeline = di.Provide["pipeline.feedback"],
) -> None:
    """Generate feedback for SUBMISSION_ID again and wait for the result."""

    async def run():
        await pipeline.regenerate(submission_id)
        await pipeline.worker.drain()
        return await pipeline.get_submission_status(submission_id)

    status = asyncio.run(run())
    if status.state is SubmissionState.FeedbackReady and status.feedback is not None:
        click.echo(f"{click.style('feedback ready', fg='green')}: score {status.feedback.score}")
    else:
        click.echo(
            f"{click.style(status.state.value, fg='red')}: {status.failure_reason} {status.failure_detail or ''}"
        )


@submission.command("show")
@click.argument("submission_id")
@di.inject
def submission_show(
    submission_id: str,
    pipeline: FeedbackPipeline = di.Provide["pipeline.feedback"],
) -> None:
    """Print the state of SUBMISSION_ID and its feedback, if any."""
    status = asyncio.run(pipeline.get_submission_status(parse_submission_id(submission_id)))
    click.echo(f"{status.submission_id}  {status.assignment_code}  {status.submitter_id}  {status.state.value}")
    if status.failure_reason:
        click.echo(f"failed: {status.failure_reason}: {status.failure_detail}")
    if status.feedback is not None:
        fb = status.feedback
        click.echo(f"score {fb.score}  " + "  ".join(f"{k} {v}" for k, v in fb.subscores.model_dump().items()))
        click.echo()
        click.echo(fb.content)
