"""
Step Slack Notify CLI

Command-line entry point run by the Buildkite plugin hook.

Usage:
    step-slack-notify [OPTIONS] COMMAND [ARGS]...

Commands:
    notify    Evaluate conditions and post the notification
    check     Evaluate conditions only
"""

import logging
import sys

import click
from dotenv import load_dotenv

from .conditions import evaluate
from .config import BuildEnvironment, MonitoringConfig, read_config
from .errors import ConfigError
from .monitoring import init_sentry
from .notifier import StepNotifier
from .slack import ProductionSlackClient
from .types import RunStatus

SKIP_HEADER = "--- :slack: Custom Slack Plugin: no conditions matched, skipping,"
SEND_HEADER = "--- :slack: Custom Slack Plugin: sending out notification."


def setup_logging(verbose: bool, quiet: bool = False):
    """Configure logging to output to stdout."""
    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(message)s',  # Buildkite log output
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def _fail(message: str):
    click.echo(click.style(f"Error: {message}", fg='red'))
    raise SystemExit(1)


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Verbose output (show DEBUG logs)')
@click.option('-q', '--quiet', is_flag=True, help='Quiet mode (only show warnings/errors)')
@click.pass_context
def cli(ctx, verbose, quiet):
    """Buildkite step notifications to Slack."""
    load_dotenv()
    setup_logging(verbose, quiet)

    ctx.ensure_object(dict)
    ctx.obj['build'] = BuildEnvironment.from_env()


@cli.command()
@click.option('--dry-run', is_flag=True, help='Resolve channel and mentions without posting')
@click.pass_context
def notify(ctx, dry_run):
    """Evaluate conditions and post the notification."""
    build = ctx.obj['build']

    try:
        monitoring = MonitoringConfig.from_env()
        init_sentry(monitoring, build)
        plugin = read_config(build.plugins)
        token = plugin.slack_token()
    except ConfigError as e:
        _fail(str(e))

    client = ProductionSlackClient(
        token,
        base_url=monitoring.slack_api_base_url,
        timeout=monitoring.slack_api_timeout,
    )
    notifier = StepNotifier(plugin, build, client)

    result = notifier.run(dry_run=dry_run, on_send=lambda: click.echo(SEND_HEADER))

    if result.status == RunStatus.SKIPPED:
        click.echo(SKIP_HEADER)
    elif result.status == RunStatus.FAILED:
        click.echo(click.style(f"Error: {result.error}", fg='red'))
    elif result.status == RunStatus.DRY_RUN:
        click.echo(f"DRY RUN - would post to {result.prepared.channel_id}:")
        click.echo(result.prepared.text)
    else:
        click.echo(click.style("Notification sent.", fg='green'))

    ctx.exit(result.exit_code)


@cli.command()
@click.pass_context
def check(ctx):
    """Evaluate conditions only and print the decision."""
    build = ctx.obj['build']

    try:
        plugin = read_config(build.plugins)
        wanted = evaluate(build.evaluation_input(), plugin.conditions.to_condition_set())
    except ConfigError as e:
        _fail(str(e))

    click.echo(f"Branch: {build.branch or '(none)'}  Exit status: {build.exit_status or '(none)'}")
    if wanted:
        click.echo(click.style("Conditions matched, a notification would be sent.", fg='green'))
    else:
        click.echo("No conditions matched, the notification would be skipped.")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
