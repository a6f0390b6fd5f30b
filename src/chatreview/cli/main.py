"""chatreview CLI entry point."""

import logging
from typing import Optional

import click

from chatreview.cli.commands import estimate_cmd, review_cmd
from chatreview.cli.output import emit_error
from chatreview.cli.registry import CLIContext
from chatreview.config import _PACKAGE_VERSION, ReviewConfig, set_config

logger = logging.getLogger(__name__)


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    envvar="CHATREVIEW_CONFIG_FILE",
    help="Path to a chatreview.toml configuration file.",
)
@click.version_option(_PACKAGE_VERSION, prog_name="chatreview")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str]) -> None:
    """Condense recent chat history and analyze it with a generation service."""
    try:
        config = ReviewConfig.from_env(config_file)
    except ValueError as e:  # includes ConfigError
        emit_error(
            f"Invalid configuration: {e}",
            code="CONFIG_ERROR",
            error_type="internal",
            remediation="Check chatreview.toml and CHATREVIEW_* environment variables",
        )
    config.setup_logging()
    set_config(config)
    logger.debug("Loaded configuration: %s", config._describe())
    ctx.obj = CLIContext(config=config, config_file=config_file)


cli.add_command(review_cmd)
cli.add_command(estimate_cmd)


if __name__ == "__main__":
    cli()
