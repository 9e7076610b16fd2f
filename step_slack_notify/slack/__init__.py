"""
Slack Module

Web API client and Block Kit builders for step notifications.
"""

from .client import Channel, SlackClient, ProductionSlackClient, MockSlackClient
from .blocks import build_notification_blocks, build_footer

__all__ = [
    'Channel',
    'SlackClient',
    'ProductionSlackClient',
    'MockSlackClient',
    'build_notification_blocks',
    'build_footer',
]
