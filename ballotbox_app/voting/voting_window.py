from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from voting.exceptions import VotingError
from voting.models import AuditLogEntry, VotingWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VotingWindowState:
    deadline: datetime.datetime | None
    is_open: bool
    now: datetime.datetime

    @property
    def seconds_remaining(self) -> int | None:
        """Whole seconds until the deadline; None when there is no deadline."""
        if self.deadline is None:
            return None
        return max(0, int((self.deadline - self.now).total_seconds()))


def is_open(*, now: datetime.datetime, deadline: datetime.datetime | None) -> bool:
    # The deadline instant itself is already closed.
    if deadline is None:
        return True
    return now < deadline


def get_voting_window(*, now: datetime.datetime | None = None) -> VotingWindowState:
    current = now or timezone.now()
    window = VotingWindow.load()
    return VotingWindowState(
        deadline=window.deadline,
        is_open=is_open(now=current, deadline=window.deadline),
        now=current,
    )


def is_voting_open(*, now: datetime.datetime | None = None) -> bool:
    return get_voting_window(now=now).is_open


def _isoformat_or_none(value: datetime.datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@transaction.atomic
def set_voting_deadline(
    *,
    deadline: datetime.datetime | None,
    actor: str | None = None,
) -> VotingWindow:
    """Set or clear the voting deadline.

    Votes already committed are never invalidated by a change here; a deadline
    in the past simply closes voting from now on.
    """
    if deadline is not None and timezone.is_naive(deadline):
        raise VotingError("Deadline must include a timezone.")

    window = VotingWindow.load(for_update=True)
    previous = window.deadline

    window.deadline = deadline
    window.save(update_fields=["deadline", "updated_at"])

    AuditLogEntry.record(
        event_type="voting_deadline_changed",
        payload={
            "previous_deadline": _isoformat_or_none(previous),
            "new_deadline": _isoformat_or_none(deadline),
        },
        actor=actor,
    )
    logger.info(
        "set_voting_deadline: previous=%s new=%s actor=%s",
        _isoformat_or_none(previous) or "<none>",
        _isoformat_or_none(deadline) or "<none>",
        actor or "-",
    )
    return window
