"""
Slack Block Kit Message Builders

Creates the formatted notification posted for a build step.
"""

from typing import Any, Dict, List

from ..config import BuildEnvironment


def _divider() -> Dict[str, str]:
    """Create a divider block."""
    return {"type": "divider"}


def _section(text: str) -> Dict[str, Any]:
    """Create a section block with markdown."""
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": text},
    }


def _context(elements: List[str], block_id: str = "context") -> Dict[str, Any]:
    """Create a context block."""
    return {
        "type": "context",
        "block_id": block_id,
        "elements": [{"type": "mrkdwn", "text": e} for e in elements],
    }


def build_footer(build: BuildEnvironment) -> str:
    """
    Build the build-link line shown under the message.

    Failed builds get a link straight to the job log and a red circle;
    successful ones a green circle.
    """
    build_link = (
        f"<{build.build_url}|{build.organization_slug}/{build.pipeline_name}: "
        f"Build {build.build_number}>"
    )
    if build.failed:
        return f"*<{build.job_url}|:point_right: View logs :point_left:>* {build_link} :red_circle:"
    return f"{build_link} :large_green_circle:"


def build_notification_blocks(message: str, build: BuildEnvironment) -> List[Dict[str, Any]]:
    """
    Build Block Kit blocks for a step notification.

    Args:
        message: Message text with mentions already substituted
        build: Build metadata for the footer links

    Returns:
        List of Block Kit blocks
    """
    return [
        _section(message),
        _divider(),
        _context([build_footer(build)]),
    ]
