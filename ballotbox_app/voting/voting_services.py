from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from voting import voting_window
from voting.exceptions import (
    AlreadyVotedError,
    CandidateNotFoundError,
    VoteConflictError,
    VoterNotFoundError,
    VotingClosedError,
    VotingError,
)
from voting.models import Candidate, Vote, Voter, VotingWindow

logger = logging.getLogger(__name__)

__all__ = [
    "AlreadyVotedError",
    "CandidateNotFoundError",
    "VoteConflictError",
    "VoteReceipt",
    "VoteStatus",
    "VoterNotFoundError",
    "VotingClosedError",
    "VotingError",
    "cast_vote",
    "get_vote_status",
]


@dataclass(frozen=True)
class VoteReceipt:
    vote_id: int
    voter_id: str
    candidate_id: int
    created_at: datetime.datetime


@dataclass(frozen=True)
class VoteStatus:
    has_voted: bool
    voted_candidate_id: int | None = None
    voted_at: datetime.datetime | None = None


def _normalize_voter_id(voter_id: object) -> str:
    return str(voter_id or "").strip()


def cast_vote(
    *,
    voter_id: str,
    candidate_id: int,
    now: datetime.datetime | None = None,
) -> VoteReceipt:
    """Record exactly one vote for ``voter_id`` or raise without side effects.

    The checks before the transaction only avoid pointless write attempts. The
    authoritative checks run again under row locks inside the commit, and the
    one-to-one constraint on Vote.voter is what finally guarantees a single
    vote when two requests for the same voter race.
    """
    current = now or timezone.now()
    normalized_voter_id = _normalize_voter_id(voter_id)

    voter = Voter.objects.only("voter_id", "has_voted").filter(pk=normalized_voter_id).first()
    if voter is None:
        raise VoterNotFoundError()
    if voter.has_voted:
        raise AlreadyVotedError()

    if not voting_window.is_voting_open(now=current):
        raise VotingClosedError()

    if not Candidate.objects.active().filter(pk=candidate_id).exists():
        raise CandidateNotFoundError()

    try:
        receipt = _commit_vote(voter_id=normalized_voter_id, candidate_id=candidate_id, now=current)
    except IntegrityError as exc:
        # The savepoint is rolled back at this point, so the lookups below see
        # the state the competing transaction committed.
        if Vote.objects.filter(voter_id=normalized_voter_id).exists():
            logger.info("cast_vote: duplicate rejected by constraint voter=%s", normalized_voter_id)
            raise AlreadyVotedError() from exc
        if not Candidate.objects.active().filter(pk=candidate_id).exists():
            raise CandidateNotFoundError() from exc
        logger.warning(
            "cast_vote: integrity conflict voter=%s candidate=%s error=%s",
            normalized_voter_id,
            candidate_id,
            exc,
        )
        raise VoteConflictError() from exc
    except OperationalError as exc:
        # Lock timeouts and deadlock aborts roll the commit back; retry is safe.
        logger.warning(
            "cast_vote: storage conflict voter=%s candidate=%s error=%s",
            normalized_voter_id,
            candidate_id,
            exc,
        )
        raise VoteConflictError() from exc

    logger.info(
        "cast_vote: recorded vote=%s voter=%s candidate=%s",
        receipt.vote_id,
        receipt.voter_id,
        receipt.candidate_id,
    )
    return receipt


@transaction.atomic
def _commit_vote(*, voter_id: str, candidate_id: int, now: datetime.datetime) -> VoteReceipt:
    # Lock order is voter, then candidate. Every other writer either uses the
    # same order (voter removal) or locks candidate rows only.
    try:
        voter = Voter.objects.select_for_update().only("voter_id", "has_voted").get(pk=voter_id)
    except Voter.DoesNotExist as exc:
        raise VoterNotFoundError() from exc
    if voter.has_voted:
        raise AlreadyVotedError()

    # Re-read the deadline in the same transaction as the write so a deadline
    # changed after the advisory check is honored.
    window = VotingWindow.load()
    if not voting_window.is_open(now=now, deadline=window.deadline):
        raise VotingClosedError()

    try:
        candidate = Candidate.objects.select_for_update().only("id", "is_archived").get(pk=candidate_id)
    except Candidate.DoesNotExist as exc:
        raise CandidateNotFoundError() from exc
    if candidate.is_archived:
        raise CandidateNotFoundError()

    vote = Vote.objects.create(voter_id=voter.voter_id, candidate_id=candidate.id)
    Voter.objects.filter(pk=voter.voter_id).update(has_voted=True)
    Candidate.objects.adjust_vote_count(candidate_id=candidate.id, delta=1)

    return VoteReceipt(
        vote_id=vote.id,
        voter_id=voter.voter_id,
        candidate_id=candidate.id,
        created_at=vote.created_at,
    )


def get_vote_status(*, voter_id: str) -> VoteStatus:
    normalized_voter_id = _normalize_voter_id(voter_id)
    voter = Voter.objects.only("voter_id", "has_voted").filter(pk=normalized_voter_id).first()
    if voter is None:
        raise VoterNotFoundError()

    # A voter whose candidate was permanently deleted keeps has_voted but no
    # longer has a vote row.
    vote = Vote.objects.filter(voter_id=normalized_voter_id).only("candidate_id", "created_at").first()
    if vote is None:
        return VoteStatus(has_voted=bool(voter.has_voted))

    return VoteStatus(
        has_voted=True,
        voted_candidate_id=vote.candidate_id,
        voted_at=vote.created_at,
    )
