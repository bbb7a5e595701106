"""Rebuild the cached per-candidate vote counters from the vote ledger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from voting.models import AuditLogEntry, Candidate, Vote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateTallyCorrection:
    id: int
    name: str
    old_count: int
    new_count: int

    @property
    def drifted(self) -> bool:
        return self.old_count != self.new_count


@dataclass(frozen=True)
class ReconcileReport:
    per_candidate: list[CandidateTallyCorrection] = field(default_factory=list)
    dry_run: bool = False

    @property
    def corrected(self) -> list[CandidateTallyCorrection]:
        return [row for row in self.per_candidate if row.drifted]


def _reconcile_candidate(*, candidate_id: int, dry_run: bool) -> CandidateTallyCorrection | None:
    with transaction.atomic():
        # The row lock is the same one cast_vote takes before incrementing, so
        # the count below cannot miss a vote that is already reflected in the
        # cache, and a vote committed after the overwrite increments on top.
        candidate = (
            Candidate.objects.select_for_update()
            .only("id", "name", "vote_count")
            .filter(pk=candidate_id)
            .first()
        )
        if candidate is None:
            # Permanently deleted while the job was running.
            return None

        ledger_count = Vote.objects.for_candidate(candidate_id=candidate.id).count()
        correction = CandidateTallyCorrection(
            id=candidate.id,
            name=candidate.name,
            old_count=int(candidate.vote_count),
            new_count=ledger_count,
        )

        if correction.drifted:
            logger.warning(
                "reconcile_tallies: drift candidate=%s cached=%s ledger=%s%s",
                candidate.id,
                correction.old_count,
                correction.new_count,
                " (dry-run)" if dry_run else "",
            )

        if not dry_run:
            # Overwrite, never increment: the ledger is the source of truth.
            Candidate.objects.filter(pk=candidate.id).update(vote_count=ledger_count)

        return correction


def reconcile_tallies(*, actor: str | None = None, dry_run: bool = False) -> ReconcileReport:
    """Recompute every candidate's vote_count (archived ones included).

    Each candidate is handled in its own short transaction so the job can run
    while votes are being cast without holding locks on the whole table.
    """
    candidate_ids = list(Candidate.objects.order_by("id").values_list("id", flat=True))

    rows: list[CandidateTallyCorrection] = []
    for candidate_id in candidate_ids:
        correction = _reconcile_candidate(candidate_id=candidate_id, dry_run=dry_run)
        if correction is not None:
            rows.append(correction)

    report = ReconcileReport(per_candidate=rows, dry_run=dry_run)

    if not dry_run:
        AuditLogEntry.record(
            event_type="tallies_reconciled",
            payload={
                "candidates": len(report.per_candidate),
                "corrected": [
                    {"id": row.id, "old_count": row.old_count, "new_count": row.new_count}
                    for row in report.corrected
                ],
            },
            actor=actor,
        )

    logger.info(
        "reconcile_tallies: done candidates=%s corrected=%s dry_run=%s",
        len(report.per_candidate),
        len(report.corrected),
        dry_run,
    )
    return report
