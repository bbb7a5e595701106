import logging
from typing import override

from django.core.management.base import BaseCommand

from voting.tally_reconcile import reconcile_tallies

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Recompute every candidate's cached vote count from the vote ledger."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report drift without overwriting any counts.",
        )
        parser.add_argument(
            "--actor",
            dest="actor",
            default="",
            help="Principal id recorded in the audit log (default: empty).",
        )

    @override
    def handle(self, *args, **options) -> None:
        dry_run: bool = bool(options.get("dry_run"))
        actor = str(options.get("actor") or "").strip() or None

        logger.info("reconcile_vote_counts: start dry_run=%s actor=%s", dry_run, actor or "-")
        report = reconcile_tallies(actor=actor, dry_run=dry_run)

        for row in report.corrected:
            self.stdout.write(f"{row.id} {row.name}: {row.old_count} -> {row.new_count}")

        verb = "would correct" if dry_run else "corrected"
        self.stdout.write(
            self.style.SUCCESS(
                f"Checked {len(report.per_candidate)} candidate(s); {verb} {len(report.corrected)}."
            )
        )
