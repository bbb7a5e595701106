from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from voting.exceptions import VoterNotFoundError, VotingError
from voting.models import AuditLogEntry, Candidate, Vote, Voter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoterRemoval:
    voter_id: str
    had_vote: bool
    candidate_id: int | None = None


def ensure_voter(*, voter_id: str, display_name: str = "", email: str = "") -> Voter:
    """Create the voter on first sight of a principal; fill blank attributes later.

    Never touches has_voted.
    """
    normalized = str(voter_id or "").strip()
    if not normalized:
        raise VotingError("voter_id is required")

    display_name = str(display_name or "").strip()
    email = str(email or "").strip()

    voter, created = Voter.objects.get_or_create(
        pk=normalized,
        defaults={"display_name": display_name, "email": email},
    )
    if created:
        logger.info("ensure_voter: registered voter=%s", normalized)
        return voter

    update_fields: list[str] = []
    if display_name and not voter.display_name:
        voter.display_name = display_name
        update_fields.append("display_name")
    if email and not voter.email:
        voter.email = email
        update_fields.append("email")
    if update_fields:
        voter.save(update_fields=update_fields)
    return voter


@transaction.atomic
def remove_voter(*, voter_id: str, actor: str | None = None) -> VoterRemoval:
    """Delete a voter, their vote, and the vote's share of the candidate tally.

    The decrement uses the same counter primitive as cast_vote and commits
    together with the vote deletion.
    """
    normalized = str(voter_id or "").strip()
    try:
        voter = Voter.objects.select_for_update().get(pk=normalized)
    except Voter.DoesNotExist as exc:
        raise VoterNotFoundError() from exc

    vote = Vote.objects.filter(voter_id=voter.voter_id).only("id", "candidate_id").first()
    candidate_id: int | None = None
    if vote is not None:
        candidate_id = vote.candidate_id
        # Same lock as cast_vote and reconciliation take on this candidate.
        Candidate.objects.select_for_update().filter(pk=candidate_id).only("id").first()
        Vote.objects.filter(pk=vote.pk).delete()
        Candidate.objects.adjust_vote_count(candidate_id=candidate_id, delta=-1)

    voter.delete()

    removal = VoterRemoval(voter_id=normalized, had_vote=vote is not None, candidate_id=candidate_id)
    AuditLogEntry.record(
        event_type="voter_removed",
        payload={"voter_id": normalized, "had_vote": removal.had_vote, "candidate_id": candidate_id},
        actor=actor,
    )
    logger.info(
        "remove_voter: voter=%s had_vote=%s candidate=%s actor=%s",
        normalized,
        removal.had_vote,
        candidate_id if candidate_id is not None else "-",
        actor or "-",
    )
    return removal
