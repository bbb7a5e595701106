from __future__ import annotations

import datetime
import logging

from django.db import transaction
from django.utils import timezone

from voting.exceptions import CandidateNotFoundError, VotingError
from voting.models import AuditLogEntry, Candidate, Vote

logger = logging.getLogger(__name__)

# Display attributes an administrator may edit. vote_count and the archive
# fields are deliberately absent.
EDITABLE_CANDIDATE_FIELDS: tuple[str, ...] = ("name", "bio", "image_url", "linkedin_url")


def _lock_candidate(candidate_id: int) -> Candidate:
    try:
        return Candidate.objects.select_for_update().get(pk=candidate_id)
    except Candidate.DoesNotExist as exc:
        raise CandidateNotFoundError() from exc


@transaction.atomic
def create_candidate(
    *,
    name: str,
    bio: str = "",
    image_url: str = "",
    linkedin_url: str = "",
    actor: str | None = None,
) -> Candidate:
    name = str(name or "").strip()
    if not name:
        raise VotingError("Candidate name is required.")

    candidate = Candidate.objects.create(
        name=name,
        bio=str(bio or "").strip(),
        image_url=str(image_url or "").strip(),
        linkedin_url=str(linkedin_url or "").strip(),
    )
    AuditLogEntry.record(
        event_type="candidate_created",
        payload={"candidate_id": candidate.id, "name": candidate.name},
        actor=actor,
    )
    logger.info("create_candidate: candidate=%s actor=%s", candidate.id, actor or "-")
    return candidate


@transaction.atomic
def update_candidate(*, candidate_id: int, actor: str | None = None, **fields: str) -> Candidate:
    unknown = sorted(set(fields) - set(EDITABLE_CANDIDATE_FIELDS))
    if unknown:
        raise VotingError(f"Cannot update candidate fields: {', '.join(unknown)}")

    candidate = _lock_candidate(candidate_id)

    changed: list[str] = []
    for name, value in fields.items():
        normalized = str(value or "").strip()
        if name == "name" and not normalized:
            raise VotingError("Candidate name is required.")
        if getattr(candidate, name) != normalized:
            setattr(candidate, name, normalized)
            changed.append(name)

    if changed:
        candidate.save(update_fields=[*changed, "updated_at"])
        AuditLogEntry.record(
            event_type="candidate_updated",
            payload={"candidate_id": candidate.id, "fields": changed},
            actor=actor,
        )
    return candidate


@transaction.atomic
def archive_candidate(
    *,
    candidate_id: int,
    actor: str | None = None,
    now: datetime.datetime | None = None,
) -> Candidate:
    """Soft-delete a candidate: no new votes, history and count untouched."""
    candidate = _lock_candidate(candidate_id)
    if candidate.is_archived:
        return candidate

    candidate.is_archived = True
    candidate.archived_at = now or timezone.now()
    candidate.save(update_fields=["is_archived", "archived_at", "updated_at"])

    AuditLogEntry.record(
        event_type="candidate_archived",
        payload={"candidate_id": candidate.id, "vote_count": candidate.vote_count},
        actor=actor,
    )
    logger.info("archive_candidate: candidate=%s actor=%s", candidate.id, actor or "-")
    return candidate


@transaction.atomic
def restore_candidate(*, candidate_id: int, actor: str | None = None) -> Candidate:
    candidate = _lock_candidate(candidate_id)
    if not candidate.is_archived:
        return candidate

    candidate.is_archived = False
    candidate.archived_at = None
    candidate.save(update_fields=["is_archived", "archived_at", "updated_at"])

    AuditLogEntry.record(
        event_type="candidate_restored",
        payload={"candidate_id": candidate.id, "vote_count": candidate.vote_count},
        actor=actor,
    )
    logger.info("restore_candidate: candidate=%s actor=%s", candidate.id, actor or "-")
    return candidate


@transaction.atomic
def delete_candidate_permanently(*, candidate_id: int, actor: str | None = None) -> int:
    """Remove a candidate and every vote cast for it. Returns the votes removed.

    Voters who chose this candidate stay marked as having voted: eligibility
    follows participation, not whether the chosen candidate still exists.
    """
    candidate = _lock_candidate(candidate_id)

    votes_removed, _ = Vote.objects.for_candidate(candidate_id=candidate.id).delete()
    name = candidate.name
    candidate.delete()

    AuditLogEntry.record(
        event_type="candidate_deleted",
        payload={"candidate_id": candidate_id, "name": name, "votes_removed": votes_removed},
        actor=actor,
    )
    logger.warning(
        "delete_candidate_permanently: candidate=%s votes_removed=%s actor=%s",
        candidate_id,
        votes_removed,
        actor or "-",
    )
    return votes_removed
