from __future__ import annotations

import logging

from django.db import models, transaction
from django.db.models import F, Q

logger = logging.getLogger(__name__)


class Voter(models.Model):
    # The principal id issued by the external auth layer; never generated here.
    voter_id = models.CharField(max_length=255, primary_key=True)
    display_name = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")

    # Participation flag. Stays True even if the vote row is later removed by
    # a permanent candidate delete.
    has_voted = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "voter_id")
        indexes = [
            models.Index(fields=["has_voted"], name="voter_has_voted"),
        ]

    def __str__(self) -> str:
        return self.voter_id


class CandidateQuerySet(models.QuerySet["Candidate"]):
    def active(self) -> CandidateQuerySet:
        return self.filter(is_archived=False)

    def archived(self) -> CandidateQuerySet:
        return self.filter(is_archived=True)

    def standings(self) -> CandidateQuerySet:
        return self.order_by("-vote_count", "name", "id")

    def adjust_vote_count(self, *, candidate_id: int, delta: int) -> int:
        """Apply ``delta`` to one candidate's cached counter inside the database.

        Every increment and decrement of ``vote_count`` goes through here so the
        counter is only ever changed by an atomic ``UPDATE ... SET vote_count =
        vote_count + delta`` that commits with the matching Vote change.
        Returns the number of rows updated (0 when the candidate is gone).
        """
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("vote_count adjustments must run inside a transaction")
        if delta == 0:
            return 0

        qs = self.filter(pk=candidate_id)
        if delta < 0:
            # A drifted cache must not go negative; reconciliation repairs it.
            qs = qs.filter(vote_count__gte=-delta)
        updated = qs.update(vote_count=F("vote_count") + delta)
        if not updated:
            logger.warning("adjust_vote_count: no row updated candidate=%s delta=%s", candidate_id, delta)
        return updated


class Candidate(models.Model):
    name = models.CharField(max_length=255)
    bio = models.TextField(blank=True, default="")
    image_url = models.URLField(blank=True, default="", max_length=2048)
    linkedin_url = models.URLField(blank=True, default="", max_length=2048)

    # Denormalized count of Vote rows for this candidate. Derived from the
    # ledger; see CandidateQuerySet.adjust_vote_count and tally_reconcile.
    vote_count = models.PositiveIntegerField(default=0)

    is_archived = models.BooleanField(default=False)
    archived_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CandidateQuerySet.as_manager()

    class Meta:
        ordering = ("-created_at", "id")
        permissions = [
            ("manage_election", "Can manage candidates, the voting window and tallies"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(is_archived=False) & Q(archived_at__isnull=True))
                    | (Q(is_archived=True) & Q(archived_at__isnull=False))
                ),
                name="voting_candidate_archived_at_matches_flag",
            ),
        ]
        indexes = [
            models.Index(fields=["is_archived", "vote_count"], name="candidate_arch_count"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.pk})"


class VoteQuerySet(models.QuerySet["Vote"]):
    def for_candidate(self, *, candidate_id: int) -> VoteQuerySet:
        return self.filter(candidate_id=candidate_id)

    def recent(self) -> VoteQuerySet:
        # Commit order, not submission order.
        return self.order_by("-created_at", "-id")


class Vote(models.Model):
    # One-to-one: the storage layer itself refuses a second vote per voter.
    voter = models.OneToOneField(Voter, on_delete=models.CASCADE, related_name="vote")
    candidate = models.ForeignKey(Candidate, on_delete=models.CASCADE, related_name="votes")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = VoteQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["created_at"], name="vote_created_at"),
        ]

    def __str__(self) -> str:
        return f"vote:{self.voter_id}->{self.candidate_id}"


class VotingWindow(models.Model):
    SINGLETON_PK = 1

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_PK, editable=False)

    # None means voting is open indefinitely.
    deadline = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(id=1),
                name="voting_votingwindow_singleton",
            ),
        ]

    def __str__(self) -> str:
        return f"deadline={self.deadline.isoformat() if self.deadline else 'none'}"

    @classmethod
    def load(cls, *, for_update: bool = False) -> VotingWindow:
        """Return the singleton row, creating it (open, no deadline) on first use."""
        window, created = cls.objects.get_or_create(pk=cls.SINGLETON_PK)
        if created:
            logger.info("voting_window: created default window (no deadline)")
        if for_update:
            window = cls.objects.select_for_update().get(pk=cls.SINGLETON_PK)
        return window


class AuditLogEntry(models.Model):
    timestamp = models.DateTimeField(auto_now_add=True)
    event_type = models.CharField(max_length=64)
    payload = models.JSONField(blank=True, default=dict)
    actor = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        verbose_name_plural = "Audit log entries"
        ordering = ("timestamp", "id")
        indexes = [
            models.Index(fields=["event_type", "timestamp"], name="audit_event_ts"),
        ]

    def __str__(self) -> str:
        return f"{self.timestamp.isoformat() if self.timestamp else '-'}:{self.event_type}"

    @classmethod
    def record(cls, *, event_type: str, payload: dict[str, object], actor: str | None = None) -> AuditLogEntry:
        return cls.objects.create(event_type=event_type, payload=payload, actor=actor or "")
