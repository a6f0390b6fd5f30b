"""Review command: condense recent chat records and analyze them."""

import asyncio
import logging
from typing import Optional

import click

from chatreview.cli.output import emit_error, emit_response
from chatreview.cli.registry import get_context
from chatreview.cli.resilience import handle_keyboard_interrupt
from chatreview.core.condense import CondensePhase
from chatreview.core.errors import ConfigError
from chatreview.core.records import JsonlRecordsProvider
from chatreview.core.review import ChatReviewWorkflow

logger = logging.getLogger(__name__)

_PHASE_MESSAGES = {
    CondensePhase.CONDENSING: "Condensing chat records...",
    CondensePhase.ANALYZING: "Analyzing...",
}


def _report_progress(phase: CondensePhase) -> None:
    click.echo(_PHASE_MESSAGES.get(phase, phase.value), err=True)


@click.command("review")
@click.argument("task")
@click.option(
    "--records",
    "records_path",
    type=click.Path(exists=True, dir_okay=False),
    envvar="CHATREVIEW_RECORDS",
    required=True,
    help="JSON Lines file of chat records.",
)
@click.option("--channel", "channel_id", help="Channel the review is requested from.")
@click.option("--user", help="Only review one user (uid or name).")
@click.option("--guild", help="Review another channel/guild instead of --channel.")
@click.option("--hours", type=float, help="Look-back window in hours.")
@click.option(
    "--deadline",
    type=float,
    help="Give up after this many seconds (default: wait indefinitely).",
)
@click.pass_context
@handle_keyboard_interrupt()
def review_cmd(
    ctx: click.Context,
    task: str,
    records_path: str,
    channel_id: Optional[str],
    user: Optional[str],
    guild: Optional[str],
    hours: Optional[float],
    deadline: Optional[float],
) -> None:
    """Analyze recent chat history according to TASK.

    Long histories are condensed in several rounds before the final
    analysis, which can take a while with slow endpoints.
    """
    config = get_context(ctx).config
    if deadline is not None:
        config.deadline_seconds = deadline if deadline > 0 else None

    try:
        config.validate()
    except ConfigError as e:
        emit_error(
            str(e),
            code="CONFIG_ERROR",
            error_type="internal",
            remediation="Configure at least one endpoint in chatreview.toml or CHATREVIEW_ENDPOINTS",
        )

    workflow = ChatReviewWorkflow(
        config,
        JsonlRecordsProvider(records_path),
        on_progress=_report_progress,
    )
    logger.debug("Reviewing %s (channel=%s user=%s guild=%s)", records_path, channel_id, user, guild)
    response = asyncio.run(
        workflow.run(task, channel_id=channel_id, user=user, guild=guild, hours=hours)
    )
    emit_response(response)
