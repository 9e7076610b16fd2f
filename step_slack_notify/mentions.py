"""
Mention Resolver

Finds ``<@name>`` mentions in a message, maps each name to a Slack user or
user group and rewrites the message with Slack's mention syntax.
"""

import logging
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple

from .errors import UnresolvedMentionError

logger = logging.getLogger(__name__)

OPEN_MARKER = "<@"
CLOSE_MARKER = ">"
TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "_- ")


class MentionKind(Enum):
    """What a mention resolved to."""
    INDIVIDUAL = "individual"
    GROUP = "group"


@dataclass(frozen=True)
class Individual:
    """A Slack user as seen by mention lookup."""
    id: str
    display_name: str


@dataclass(frozen=True)
class Group:
    """A Slack user group as seen by mention lookup."""
    id: str
    name: str


@dataclass(frozen=True)
class Reference:
    """A resolved mention, tagged by kind."""
    kind: MentionKind
    id: str

    @classmethod
    def individual(cls, user_id: str) -> "Reference":
        return cls(MentionKind.INDIVIDUAL, user_id)

    @classmethod
    def group(cls, group_id: str) -> "Reference":
        return cls(MentionKind.GROUP, group_id)

    def render(self) -> str:
        """Slack mrkdwn syntax for this reference."""
        if self.kind == MentionKind.GROUP:
            return f"<!subteam^{self.id}>"
        return f"<@{self.id}>"


# Lowercased token -> reference
IdentityMapping = Dict[str, Reference]


class MentionToken(NamedTuple):
    """A mention found in a message: its text and span (markers included)."""
    text: str
    start: int
    end: int


class IdentityLookup(ABC):
    """Source of the identities mentions can resolve to."""

    @abstractmethod
    def list_individuals(self) -> List[Individual]:
        """Return every known user."""
        pass

    @abstractmethod
    def list_groups(self) -> List[Group]:
        """Return every known user group."""
        pass


def scan_mentions(message: str) -> Iterator[MentionToken]:
    """
    Yield mentions in order of appearance.

    A mention is ``<@`` followed by one or more letters, digits, underscores,
    hyphens or spaces, then ``>``. Duplicates are yielded every time they
    appear. Each call scans the message afresh.
    """
    pos = 0
    length = len(message)
    while pos < length:
        start = message.find(OPEN_MARKER, pos)
        if start == -1:
            return

        cursor = start + len(OPEN_MARKER)
        while cursor < length and message[cursor] in TOKEN_CHARS:
            cursor += 1

        name_start = start + len(OPEN_MARKER)
        if cursor > name_start and message.startswith(CLOSE_MARKER, cursor):
            end = cursor + len(CLOSE_MARKER)
            yield MentionToken(message[name_start:cursor], start, end)
            pos = end
        else:
            pos = start + 1


def extract_tokens(message: str) -> List[str]:
    """Return mention names in order of appearance, duplicates included."""
    return [token.text for token in scan_mentions(message)]


def _distinct(tokens: List[str]) -> List[str]:
    """Distinct lowercased tokens, first-seen order."""
    return list(dict.fromkeys(token.lower() for token in tokens))


def resolve_mentions(message: str, lookup: IdentityLookup) -> IdentityMapping:
    """
    Map every mention in the message to a Slack user or user group.

    Users are searched first by display name. User groups are only fetched if
    some names are still unresolved; a group matches on its name or on the
    name with hyphens read as spaces. A name that matches a user is never
    looked up as a group.

    Args:
        message: Message text containing ``<@name>`` mentions
        lookup: Identity source (usually the Slack client)

    Returns:
        Mapping of lowercased mention name to reference

    Raises:
        UnresolvedMentionError: If any name matches neither a user nor a group
        SlackApiError: If listing users or groups fails
    """
    wanted = _distinct(extract_tokens(message))
    mapping: IdentityMapping = {}
    if not wanted:
        return mapping

    for user in lookup.list_individuals():
        name = user.display_name.lower()
        if name in wanted and name not in mapping:
            mapping[name] = Reference.individual(user.id)

    if len(mapping) == len(wanted):
        logger.debug("Resolved all %d mentions to users", len(wanted))
        return mapping

    pending = [token for token in wanted if token not in mapping]
    for group in lookup.list_groups():
        group_name = group.name.lower()
        for token in pending:
            if token in mapping:
                continue
            if group_name == token or group_name == token.replace("-", " "):
                mapping[token] = Reference.group(group.id)

    missing = [token for token in wanted if token not in mapping]
    if missing:
        raise UnresolvedMentionError(
            found={token: ref.render() for token, ref in mapping.items()},
            missing=missing,
        )

    logger.debug("Resolved %d mentions (%d groups)", len(mapping),
                 sum(1 for ref in mapping.values() if ref.kind == MentionKind.GROUP))
    return mapping


def substitute_mentions(message: str, mapping: IdentityMapping) -> str:
    """
    Replace every resolved ``<@name>`` in the message with its Slack syntax.

    Names are matched case-insensitively against the mapping. Mentions with
    no entry are left as they are.
    """
    parts = []
    pos = 0
    for token in scan_mentions(message):
        reference = mapping.get(token.text.lower())
        if reference is None:
            continue
        parts.append(message[pos:token.start])
        parts.append(reference.render())
        pos = token.end
    parts.append(message[pos:])
    return "".join(parts)


def interpolate_mentions(message: str, lookup: IdentityLookup) -> str:
    """
    Resolve and substitute all mentions in one go.

    Raises:
        UnresolvedMentionError: If any mention cannot be resolved. Nothing is
            substituted in that case.
        SlackApiError: If the lookup fails
    """
    mapping = resolve_mentions(message, lookup)
    if not mapping:
        return message
    return substitute_mentions(message, mapping)
