"""
Slack Web API Client

Interface and implementations for the Slack calls the step needs: listing
users, user groups and channels, and posting a message.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from ..config import DEFAULT_SLACK_API_BASE_URL
from ..errors import SlackApiError
from ..mentions import Group, IdentityLookup, Individual

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Channel:
    """A Slack conversation."""
    id: str
    name: str


class SlackClient(IdentityLookup):
    """Abstract interface for Slack API calls."""

    @abstractmethod
    def list_channels(self, cursor: str = "") -> Tuple[List[Channel], str]:
        """
        Get one page of public, unarchived channels.

        Returns:
            (channels, next_cursor); next_cursor is empty on the last page
        """
        pass

    @abstractmethod
    def post_message(
        self,
        channel_id: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """Post a message to a channel. Returns the API reply."""
        pass

    def find_channel_id(self, channel_name: str) -> Optional[str]:
        """
        Find a channel's ID by name (case-insensitive, leading '#' ignored).

        Pages through the channel list until the name is found.

        Returns:
            Channel ID, or None if no channel has that name
        """
        wanted = channel_name.lstrip("#").lower()
        cursor = ""
        pages = 0
        while True:
            channels, cursor = self.list_channels(cursor)
            pages += 1
            for channel in channels:
                if channel.name.lower() == wanted:
                    logger.debug("Found channel %s (%s) on page %d", channel.name, channel.id, pages)
                    return channel.id
            if not cursor:
                break

        logger.debug("Channel %r not found in %d pages", channel_name, pages)
        return None


class ProductionSlackClient(SlackClient):
    """Real client using the Slack Web API over HTTPS."""

    # Slack's recommended page size for cursor pagination
    PAGE_SIZE = 200

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_SLACK_API_BASE_URL,
        timeout: float = 10.0,
    ):
        """
        Initialize Slack client.

        Args:
            token: Bot or user OAuth token
            base_url: Web API root
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Call a Web API method. POSTs JSON when a payload is given, GETs otherwise."""
        url = f"{self.base_url}/{method}"

        try:
            if payload is not None:
                response = self.session.post(url, json=payload, timeout=self.timeout)
            else:
                response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise SlackApiError(f"slack {method} request failed: {e}", method=method) from e
        except ValueError as e:
            raise SlackApiError(f"slack {method} returned invalid JSON: {e}", method=method) from e

        if not isinstance(data, dict) or not data.get("ok"):
            error_code = data.get("error", "unknown_error") if isinstance(data, dict) else "unknown_error"
            raise SlackApiError(
                f"slack {method} failed: {error_code}",
                method=method,
                error_code=error_code,
            )

        return data

    @staticmethod
    def _next_cursor(data: Dict[str, Any]) -> str:
        meta = data.get("response_metadata") or {}
        return meta.get("next_cursor") or ""

    def list_individuals(self) -> List[Individual]:
        users = []
        cursor = ""
        while True:
            params = {"limit": self.PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            data = self._request("users.list", params=params)

            for member in data.get("members", []):
                if member.get("deleted"):
                    continue
                profile = member.get("profile") or {}
                users.append(Individual(id=member["id"], display_name=profile.get("display_name", "")))

            cursor = self._next_cursor(data)
            if not cursor:
                break

        logger.debug("Fetched %d slack users", len(users))
        return users

    def list_groups(self) -> List[Group]:
        data = self._request("usergroups.list")
        groups = [Group(id=g["id"], name=g.get("name", "")) for g in data.get("usergroups", [])]
        logger.debug("Fetched %d slack user groups", len(groups))
        return groups

    def list_channels(self, cursor: str = "") -> Tuple[List[Channel], str]:
        params = {
            "exclude_archived": "true",
            "types": "public_channel",
            "limit": self.PAGE_SIZE,
        }
        if cursor:
            params["cursor"] = cursor
        data = self._request("conversations.list", params=params)

        channels = [Channel(id=c["id"], name=c.get("name", "")) for c in data.get("channels", [])]
        return channels, self._next_cursor(data)

    def post_message(
        self,
        channel_id: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"channel": channel_id, "text": text}
        if blocks:
            payload["blocks"] = blocks
        data = self._request("chat.postMessage", payload=payload)
        logger.debug("Posted message to %s (ts=%s)", channel_id, data.get("ts"))
        return data


class MockSlackClient(SlackClient):
    """Mock client for testing."""

    def __init__(
        self,
        individuals: Optional[List[Individual]] = None,
        groups: Optional[List[Group]] = None,
        channel_pages: Optional[List[List[Channel]]] = None,
    ):
        self.individuals = individuals or []
        self.groups = groups or []
        self.channel_pages = channel_pages or []
        self.posted: List[Dict[str, Any]] = []
        self.calls: Dict[str, int] = {}

    def _record(self, method: str) -> None:
        self.calls[method] = self.calls.get(method, 0) + 1

    def list_individuals(self) -> List[Individual]:
        self._record("list_individuals")
        return list(self.individuals)

    def list_groups(self) -> List[Group]:
        self._record("list_groups")
        return list(self.groups)

    def list_channels(self, cursor: str = "") -> Tuple[List[Channel], str]:
        self._record("list_channels")
        if not self.channel_pages:
            return [], ""
        index = int(cursor) if cursor else 0
        next_cursor = str(index + 1) if index + 1 < len(self.channel_pages) else ""
        return list(self.channel_pages[index]), next_cursor

    def post_message(
        self,
        channel_id: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        self._record("post_message")
        self.posted.append({"channel": channel_id, "text": text, "blocks": blocks})
        return {"ok": True, "channel": channel_id, "ts": f"{len(self.posted)}.000000"}
