"""Step Slack Notify - Buildkite step notifications to Slack.

Decides from a build's exit status and branch whether a notification is
wanted, turns ``<@name>`` mentions into Slack user and group mentions and
posts the message to a channel looked up by name.

Modules:
    conditions - Condition evaluation
    mentions - Mention extraction, resolution and substitution
    config - Plugin, build and monitoring configuration
    slack - Slack Web API client and Block Kit builders
    notifier - Orchestrates one notification run
    monitoring - Sentry error tracking
    cli - Command-line entry point
"""

from .conditions import ConditionSet, EvaluationInput, evaluate
from .config import BuildEnvironment, MonitoringConfig, PluginConfig, read_config
from .errors import ConfigError, NotifyError, SlackApiError, UnresolvedMentionError
from .mentions import extract_tokens, interpolate_mentions, resolve_mentions
from .notifier import StepNotifier

__all__ = [
    'ConditionSet',
    'EvaluationInput',
    'evaluate',
    'BuildEnvironment',
    'MonitoringConfig',
    'PluginConfig',
    'read_config',
    'ConfigError',
    'NotifyError',
    'SlackApiError',
    'UnresolvedMentionError',
    'extract_tokens',
    'interpolate_mentions',
    'resolve_mentions',
    'StepNotifier',
]

__version__ = '1.0.0'
