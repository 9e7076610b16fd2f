"""Condition Evaluator - decides whether a build outcome warrants a notification."""

import logging
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

# ASCII digits only; no whitespace, underscores or other Unicode digits
_EXIT_STATUS_RE = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ConditionSet:
    """Gating rules for a notification. Empty fields impose no constraint."""

    exit_codes: FrozenSet[int] = field(default_factory=frozenset)
    require_failure: bool = False
    branches: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        exit_codes: Optional[Iterable[int]] = None,
        require_failure: bool = False,
        branches: Optional[Iterable[str]] = None,
    ) -> "ConditionSet":
        """Create a condition set from plain lists (duplicates collapse)."""
        return cls(
            exit_codes=frozenset(exit_codes or ()),
            require_failure=require_failure,
            branches=frozenset(branches or ()),
        )

    @property
    def is_empty(self) -> bool:
        return not self.exit_codes and not self.require_failure and not self.branches


@dataclass(frozen=True)
class EvaluationInput:
    """Observed facts about the build step being notified on."""

    exit_status: str
    branch: str = ""

    @property
    def exit_code(self) -> int:
        """Exit status as an integer.

        Raises:
            ConfigError: If the status is not a base-10 integer
        """
        return parse_exit_status(self.exit_status)

    @property
    def succeeded(self) -> bool:
        return self.exit_status == "0"


def parse_exit_status(exit_status: str) -> int:
    """
    Parse a textual exit status.

    Args:
        exit_status: Value of BUILDKITE_COMMAND_EXIT_STATUS

    Returns:
        The exit status as an int

    Raises:
        ConfigError: If the status is not a plain base-10 integer
    """
    if not isinstance(exit_status, str) or not _EXIT_STATUS_RE.fullmatch(exit_status):
        raise ConfigError(f"invalid exit status {exit_status!r}: not an integer")
    return int(exit_status)


def evaluate(facts: EvaluationInput, rules: ConditionSet) -> bool:
    """
    Decide whether to notify.

    Checks run in order branch, exit code, failure flag and stop at the first
    one that rejects. A check whose rule is not configured always passes.

    Args:
        facts: Exit status and branch of the build
        rules: Configured conditions

    Returns:
        True if every configured condition is satisfied

    Raises:
        ConfigError: If exit codes are configured and the status is not numeric
    """
    if rules.branches and facts.branch not in rules.branches:
        logger.info("no branch conditions matching (branch %r)", facts.branch)
        return False

    if rules.exit_codes and facts.exit_code not in rules.exit_codes:
        logger.info("no exit code conditions matching (exit status %s)", facts.exit_status)
        return False

    # Independent of exit_codes: a listed 0 still does not count as a failure.
    if rules.require_failure and facts.succeeded:
        logger.info("failed condition not matching, build succeeded")
        return False

    return True
