"""Outcome of a notification run."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class RunStatus(Enum):
    SENT = "sent"
    DRY_RUN = "dry_run"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PreparedMessage:
    """A notification ready to post."""
    channel_id: str
    text: str
    blocks: List[Dict[str, Any]]


@dataclass
class RunResult:
    """
    What StepNotifier.run did.

    prepared is set once channel and mentions resolved, reply only after a
    real post, error only when the run FAILED.
    """
    status: RunStatus
    prepared: Optional[PreparedMessage] = None
    reply: Optional[Dict[str, Any]] = None
    error: str = ""

    @property
    def exit_code(self) -> int:
        """Process exit code; a skip is not a failure."""
        return 1 if self.status == RunStatus.FAILED else 0
