"""Errors raised by the notification step."""

from typing import Dict, List, Optional


class NotifyError(Exception):
    """Base class for all fatal notification errors."""


class ConfigError(NotifyError):
    """Raised when plugin configuration or build metadata is malformed."""


class SlackApiError(NotifyError):
    """Raised when a Slack Web API call fails or replies with ok=false."""

    def __init__(self, message: str, method: str = "", error_code: Optional[str] = None):
        super().__init__(message)
        self.method = method
        self.error_code = error_code


class UnresolvedMentionError(NotifyError):
    """Raised when some mentions match neither a Slack user nor a user group."""

    def __init__(self, found: Dict[str, str], missing: List[str]):
        super().__init__(
            f"could not find all slack users and groups: found {found}, missing {missing}"
        )
        self.found = found
        self.missing = missing
