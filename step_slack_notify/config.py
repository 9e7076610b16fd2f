"""
Configuration

Plugin settings come from the JSON in BUILDKITE_PLUGINS; build metadata and
monitoring settings come from environment variables. Everything is read once
at startup and passed down explicitly.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .conditions import ConditionSet, EvaluationInput
from .errors import ConfigError

PLUGIN_KEY = "sourcegraph/step-slack-notify-buildkite-plugin"
DEFAULT_TOKEN_ENV_VAR = "SLACK_TOKEN"
DEFAULT_SLACK_API_BASE_URL = "https://slack.com/api"


def _expect_list(data: Dict[str, Any], key: str, item_type: type) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"conditions.{key} must be a list, got {type(value).__name__}")
    for item in value:
        # bool is an int subclass; true/false are not exit codes
        if not isinstance(item, item_type) or isinstance(item, bool):
            raise ConfigError(f"conditions.{key} contains invalid value {item!r}")
    return value


@dataclass
class ConditionsConfig:
    """The ``conditions`` block of the plugin configuration."""

    exit_codes: List[int] = field(default_factory=list)
    failed: bool = False
    branches: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ConditionsConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("conditions must be an object")

        failed = data.get("failed", False)
        if not isinstance(failed, bool):
            raise ConfigError(f"conditions.failed must be a boolean, got {failed!r}")

        return cls(
            exit_codes=_expect_list(data, "exit_codes", int),
            failed=failed,
            branches=_expect_list(data, "branches", str),
        )

    def to_condition_set(self) -> ConditionSet:
        return ConditionSet.build(
            exit_codes=self.exit_codes,
            require_failure=self.failed,
            branches=self.branches,
        )


@dataclass
class PluginConfig:
    """Settings for this step, as written in the pipeline YAML."""

    message: str = ""
    channel_name: str = ""
    slack_token_env_var_name: str = DEFAULT_TOKEN_ENV_VAR
    conditions: ConditionsConfig = field(default_factory=ConditionsConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PluginConfig":
        if not isinstance(data, dict):
            raise ConfigError("plugin configuration must be an object")

        for key in ("message", "channel_name", "slack_token_env_var_name"):
            if key in data and not isinstance(data[key], str):
                raise ConfigError(f"{key} must be a string")

        return cls(
            message=data.get("message", ""),
            channel_name=data.get("channel_name", ""),
            slack_token_env_var_name=data.get("slack_token_env_var_name") or DEFAULT_TOKEN_ENV_VAR,
            conditions=ConditionsConfig.from_dict(data.get("conditions")),
        )

    def slack_token(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """
        Read the Slack token from the configured environment variable.

        Raises:
            ConfigError: If the variable is unset or blank
        """
        environ = os.environ if environ is None else environ
        token = environ.get(self.slack_token_env_var_name, "")
        if not token:
            raise ConfigError(
                f"Blank Slack token in ${self.slack_token_env_var_name}, aborting"
            )
        return token


def read_config(buildkite_plugins: str) -> PluginConfig:
    """
    Extract this plugin's configuration from BUILDKITE_PLUGINS.

    BUILDKITE_PLUGINS is a JSON list of single-key objects mapping a plugin
    reference (e.g. ``github.com/sourcegraph/step-slack-notify-buildkite-plugin#v1``)
    to that plugin's settings. The first key containing the plugin name wins.

    Args:
        buildkite_plugins: Raw BUILDKITE_PLUGINS value

    Returns:
        Parsed PluginConfig

    Raises:
        ConfigError: If the JSON is malformed or no block for this plugin exists
    """
    try:
        plugins = json.loads(buildkite_plugins or "")
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to read config: {e}") from e

    if not isinstance(plugins, list):
        raise ConfigError("failed to read config: BUILDKITE_PLUGINS must be a JSON list")

    for plugin in plugins:
        if not isinstance(plugin, dict):
            continue
        for key, value in plugin.items():
            if PLUGIN_KEY in key:
                return PluginConfig.from_dict(value or {})

    raise ConfigError("failed to read config: cannot find configuration")


@dataclass
class BuildEnvironment:
    """Build metadata exported by the Buildkite agent."""

    exit_status: str = ""
    branch: str = ""
    build_url: str = ""
    job_id: str = ""
    organization_slug: str = ""
    pipeline_name: str = ""
    build_number: str = ""
    plugins: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildEnvironment":
        """Create from BUILDKITE_* environment variables."""
        environ = os.environ if environ is None else environ
        return cls(
            exit_status=environ.get("BUILDKITE_COMMAND_EXIT_STATUS", ""),
            branch=environ.get("BUILDKITE_BRANCH", ""),
            build_url=environ.get("BUILDKITE_BUILD_URL", ""),
            job_id=environ.get("BUILDKITE_JOB_ID", ""),
            organization_slug=environ.get("BUILDKITE_ORGANIZATION_SLUG", ""),
            pipeline_name=environ.get("BUILDKITE_PIPELINE_NAME", ""),
            build_number=environ.get("BUILDKITE_BUILD_NUMBER", ""),
            plugins=environ.get("BUILDKITE_PLUGINS", ""),
        )

    @property
    def failed(self) -> bool:
        return self.exit_status != "0"

    @property
    def job_url(self) -> str:
        """Link to this job's log within the build page."""
        return f"{self.build_url}#{self.job_id}"

    def evaluation_input(self) -> EvaluationInput:
        return EvaluationInput(exit_status=self.exit_status, branch=self.branch)


@dataclass
class MonitoringConfig:
    """Configuration for Slack API access and error tracking."""

    # Slack settings
    slack_api_base_url: str = DEFAULT_SLACK_API_BASE_URL
    slack_api_timeout: float = 10.0

    # Sentry settings
    sentry_dsn: Optional[str] = field(default=None)
    sentry_environment: str = "ci"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MonitoringConfig":
        """Create config from environment variables."""
        environ = os.environ if environ is None else environ
        timeout = environ.get("SLACK_API_TIMEOUT", "10")
        try:
            slack_api_timeout = float(timeout)
        except ValueError:
            raise ConfigError(f"SLACK_API_TIMEOUT must be a number, got {timeout!r}") from None

        return cls(
            slack_api_base_url=environ.get("SLACK_API_BASE_URL", DEFAULT_SLACK_API_BASE_URL),
            slack_api_timeout=slack_api_timeout,
            sentry_dsn=environ.get("SENTRY_DSN") or None,
            sentry_environment=environ.get("SENTRY_ENVIRONMENT", "ci"),
        )

    @property
    def sentry_enabled(self) -> bool:
        """Check if Sentry tracking is configured."""
        return bool(self.sentry_dsn)
