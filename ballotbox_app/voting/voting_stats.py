"""Read-only views of the election state for results pages and the admin dashboard."""

from __future__ import annotations

import datetime
from collections import OrderedDict

from django.db.models import Count
from django.db.models.functions import TruncDate
from django.utils import timezone

from voting.models import Candidate, Vote, Voter


def candidate_payload(candidate: Candidate) -> dict[str, object]:
    return {
        "id": candidate.id,
        "name": candidate.name,
        "bio": candidate.bio,
        "image_url": candidate.image_url,
        "linkedin_url": candidate.linkedin_url,
        "vote_count": int(candidate.vote_count),
        "is_archived": bool(candidate.is_archived),
        "archived_at": candidate.archived_at.isoformat() if candidate.archived_at else None,
    }


def candidate_standings(*, include_archived: bool = False, archived_only: bool = False) -> list[dict[str, object]]:
    qs = Candidate.objects.all()
    if archived_only:
        qs = qs.archived()
    elif not include_archived:
        qs = qs.active()
    return [candidate_payload(c) for c in qs.standings()]


def recent_votes(*, limit: int = 10) -> list[dict[str, object]]:
    votes = Vote.objects.recent().select_related("voter", "candidate")[: max(0, int(limit))]
    return [
        {
            "vote_id": vote.id,
            "voter_id": vote.voter_id,
            "voter_name": vote.voter.display_name,
            "candidate_id": vote.candidate_id,
            "candidate_name": vote.candidate.name,
            "created_at": vote.created_at.isoformat(),
        }
        for vote in votes
    ]


def voters_who_voted() -> list[dict[str, object]]:
    # Only voters whose vote row still exists; most recent vote first.
    voters = (
        Voter.objects.filter(has_voted=True, vote__isnull=False)
        .select_related("vote__candidate")
        .order_by("-vote__created_at", "voter_id")
    )
    return [
        {
            "voter_id": voter.voter_id,
            "display_name": voter.display_name,
            "candidate_name": voter.vote.candidate.name,
            "voted_at": voter.vote.created_at.isoformat(),
        }
        for voter in voters
    ]


def _vote_or_none(voter: Voter) -> Vote | None:
    try:
        return voter.vote
    except Vote.DoesNotExist:
        return None


def all_voters() -> list[dict[str, object]]:
    """Every registered voter for the admin listing, newest registration first.

    Includes voters who have not voted and voters whose vote row was removed
    with a permanently deleted candidate (``has_voted`` true, ``vote`` None).
    """
    voters = Voter.objects.select_related("vote__candidate").order_by("-created_at", "voter_id")
    rows: list[dict[str, object]] = []
    for voter in voters:
        vote = _vote_or_none(voter)
        rows.append(
            {
                "voter_id": voter.voter_id,
                "display_name": voter.display_name,
                "email": voter.email,
                "has_voted": bool(voter.has_voted),
                "created_at": voter.created_at.isoformat(),
                "vote": (
                    {
                        "candidate_id": vote.candidate_id,
                        "candidate_name": vote.candidate.name,
                        "voted_at": vote.created_at.isoformat(),
                    }
                    if vote is not None
                    else None
                ),
            }
        )
    return rows


def voting_overview() -> dict[str, object]:
    total_voters = Voter.objects.count()
    voters_voted = Voter.objects.filter(has_voted=True).count()

    participation = "0"
    if total_voters > 0:
        participation = f"{voters_voted * 100 / total_voters:.1f}"

    return {
        "total_voters": total_voters,
        "total_candidates": Candidate.objects.active().count(),
        "total_votes": Vote.objects.count(),
        "voters_voted": voters_voted,
        "participation_rate": participation,
    }


def votes_per_day(*, days: int = 7, now: datetime.datetime | None = None) -> OrderedDict[str, int]:
    """Votes committed per UTC calendar day for the last ``days`` days, oldest first."""
    current = now or timezone.now()
    today = current.astimezone(datetime.UTC).date()
    first_day = today - datetime.timedelta(days=max(1, days) - 1)

    buckets: OrderedDict[str, int] = OrderedDict()
    for offset in range(max(1, days)):
        buckets[(first_day + datetime.timedelta(days=offset)).isoformat()] = 0

    start = datetime.datetime.combine(first_day, datetime.time.min, tzinfo=datetime.UTC)
    end = datetime.datetime.combine(today + datetime.timedelta(days=1), datetime.time.min, tzinfo=datetime.UTC)
    rows = (
        Vote.objects.filter(created_at__gte=start, created_at__lt=end)
        .annotate(day=TruncDate("created_at", tzinfo=datetime.UTC))
        .values("day")
        .annotate(count=Count("id"))
    )
    for row in rows:
        key = row["day"].isoformat()
        if key in buckets:
            buckets[key] = int(row["count"])
    return buckets


def election_analytics(*, recent_limit: int = 10, trend_days: int = 7) -> dict[str, object]:
    return {
        "overview": voting_overview(),
        "candidates": candidate_standings(),
        "recent_votes": recent_votes(limit=recent_limit),
        "voting_trend": votes_per_day(days=trend_days),
    }
