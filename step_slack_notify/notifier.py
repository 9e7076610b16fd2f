"""
Step Notifier

Runs one notification: gate on the configured conditions, find the target
channel, resolve mentions, build the blocks and post.
"""

import logging
from typing import Callable, Optional

from .conditions import evaluate
from .config import BuildEnvironment, PluginConfig
from .errors import ConfigError, NotifyError
from .mentions import interpolate_mentions
from .monitoring import add_breadcrumb, capture_exception
from .slack import SlackClient, build_notification_blocks
from .types import PreparedMessage, RunResult, RunStatus

logger = logging.getLogger(__name__)


class StepNotifier:
    """
    Sends the Slack notification for a build step.

    Usage:
        plugin = read_config(build.plugins)
        client = ProductionSlackClient(plugin.slack_token())
        result = StepNotifier(plugin, build, client).run()
    """

    def __init__(self, plugin: PluginConfig, build: BuildEnvironment, client: SlackClient):
        self.plugin = plugin
        self.build = build
        self.client = client

    def should_notify(self) -> bool:
        """
        Evaluate the configured conditions against this build.

        Raises:
            ConfigError: If exit codes are configured and the exit status is not numeric
        """
        rules = self.plugin.conditions.to_condition_set()
        return evaluate(self.build.evaluation_input(), rules)

    def resolve_channel(self) -> str:
        """
        Find the target channel ID.

        Raises:
            ConfigError: If no channel has the configured name
        """
        name = self.plugin.channel_name
        channel_id = self.client.find_channel_id(name) if name else None
        if not channel_id:
            raise ConfigError(f"aborting, could not find channel named {name!r}")
        return channel_id

    def prepare(self) -> PreparedMessage:
        """
        Resolve channel and mentions and build the message.

        Raises:
            NotifyError: If any step fails; nothing has been posted
        """
        channel_id = self.resolve_channel()
        add_breadcrumb(f"Resolved channel {self.plugin.channel_name}", category="slack")

        text = interpolate_mentions(self.plugin.message, self.client)
        add_breadcrumb("Resolved mentions", category="slack")

        blocks = build_notification_blocks(text, self.build)
        return PreparedMessage(channel_id=channel_id, text=text, blocks=blocks)

    def run(self, dry_run: bool = False, on_send: Optional[Callable[[], None]] = None) -> RunResult:
        """
        Run the notification step.

        Args:
            dry_run: Resolve everything but do not post
            on_send: Called once the conditions have matched, before any Slack call

        Returns:
            SKIPPED if no condition matched, DRY_RUN or SENT with the prepared
            message (and the API reply once sent), FAILED with the reason otherwise.
            A failure is reported to Sentry here and not logged; the caller prints it.
        """
        try:
            if not self.should_notify():
                logger.info("no conditions matching, exiting.")
                return RunResult(RunStatus.SKIPPED)

            if on_send is not None:
                on_send()

            prepared = self.prepare()

            if dry_run:
                logger.info("Dry run, not posting to %s", prepared.channel_id)
                return RunResult(RunStatus.DRY_RUN, prepared=prepared)

            reply = self.client.post_message(prepared.channel_id, prepared.text, prepared.blocks)
            logger.info("Notification sent to #%s", self.plugin.channel_name)
            return RunResult(RunStatus.SENT, prepared=prepared, reply=reply)

        except NotifyError as e:
            capture_exception(e, tags={"error_type": type(e).__name__})
            return RunResult(RunStatus.FAILED, error=str(e))
