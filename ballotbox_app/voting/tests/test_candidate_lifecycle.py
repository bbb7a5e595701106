from __future__ import annotations

import datetime

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from voting.candidate_lifecycle import (
    archive_candidate,
    create_candidate,
    delete_candidate_permanently,
    restore_candidate,
    update_candidate,
)
from voting.exceptions import AlreadyVotedError, CandidateNotFoundError, VotingError
from voting.models import AuditLogEntry, Candidate, Vote, Voter
from voting.voting_services import cast_vote, get_vote_status


class CandidateLifecycleTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = Candidate.objects.create(name="Alice")
        self.bob = Candidate.objects.create(name="Bob")
        for index in range(4):
            Voter.objects.create(voter_id=f"v{index}")
        for index in range(3):
            cast_vote(voter_id=f"v{index}", candidate_id=self.alice.id)

    def test_archive_keeps_count_and_blocks_new_votes(self) -> None:
        now = timezone.now()
        candidate = archive_candidate(candidate_id=self.alice.id, actor="admin", now=now)

        self.assertTrue(candidate.is_archived)
        self.assertEqual(candidate.archived_at, now)
        self.assertEqual(candidate.vote_count, 3)
        self.assertEqual(Vote.objects.filter(candidate=self.alice).count(), 3)

        with self.assertRaises(CandidateNotFoundError):
            cast_vote(voter_id="v3", candidate_id=self.alice.id)

        self.assertTrue(AuditLogEntry.objects.filter(event_type="candidate_archived", actor="admin").exists())

    def test_archive_twice_is_a_noop(self) -> None:
        first = archive_candidate(candidate_id=self.alice.id, now=timezone.now() - datetime.timedelta(hours=1))
        second = archive_candidate(candidate_id=self.alice.id)

        self.assertEqual(second.archived_at, first.archived_at)
        self.assertEqual(AuditLogEntry.objects.filter(event_type="candidate_archived").count(), 1)

    def test_restore_returns_candidate_with_same_count(self) -> None:
        archive_candidate(candidate_id=self.alice.id)

        candidate = restore_candidate(candidate_id=self.alice.id, actor="admin")

        self.assertFalse(candidate.is_archived)
        self.assertIsNone(candidate.archived_at)
        self.assertEqual(candidate.vote_count, 3)

        cast_vote(voter_id="v3", candidate_id=self.alice.id)
        candidate.refresh_from_db()
        self.assertEqual(candidate.vote_count, 4)

    def test_restore_active_candidate_is_a_noop(self) -> None:
        restore_candidate(candidate_id=self.bob.id)
        self.assertFalse(AuditLogEntry.objects.filter(event_type="candidate_restored").exists())

    def test_lifecycle_operations_on_missing_candidate_raise(self) -> None:
        for operation in (archive_candidate, restore_candidate, delete_candidate_permanently):
            with self.subTest(operation=operation.__name__):
                with self.assertRaises(CandidateNotFoundError):
                    operation(candidate_id=999_999)

    def test_permanent_delete_removes_votes_and_keeps_participation(self) -> None:
        removed = delete_candidate_permanently(candidate_id=self.alice.id, actor="admin")

        self.assertEqual(removed, 3)
        self.assertFalse(Candidate.objects.filter(pk=self.alice.id).exists())
        self.assertEqual(Vote.objects.count(), 0)

        for index in range(3):
            self.assertTrue(Voter.objects.get(pk=f"v{index}").has_voted)

        status = get_vote_status(voter_id="v0")
        self.assertTrue(status.has_voted)
        self.assertIsNone(status.voted_candidate_id)

        with self.assertRaises(AlreadyVotedError):
            cast_vote(voter_id="v0", candidate_id=self.bob.id)

        entry = AuditLogEntry.objects.get(event_type="candidate_deleted")
        self.assertEqual(entry.payload, {"candidate_id": self.alice.id, "name": "Alice", "votes_removed": 3})

    def test_permanent_delete_leaves_other_tallies_alone(self) -> None:
        cast_vote(voter_id="v3", candidate_id=self.bob.id)

        delete_candidate_permanently(candidate_id=self.alice.id)

        self.bob.refresh_from_db()
        self.assertEqual(self.bob.vote_count, 1)
        self.assertEqual(Vote.objects.filter(candidate=self.bob).count(), 1)

    def test_archived_at_must_match_flag(self) -> None:
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Candidate.objects.filter(pk=self.bob.id).update(is_archived=True)


class CandidateEditTests(TestCase):
    def test_create_candidate_starts_at_zero_and_audits(self) -> None:
        candidate = create_candidate(
            name="  Carol  ",
            bio="Infra",
            image_url="https://example.com/carol.png",
            actor="admin",
        )

        self.assertEqual(candidate.name, "Carol")
        self.assertEqual(candidate.vote_count, 0)
        self.assertFalse(candidate.is_archived)
        self.assertTrue(
            AuditLogEntry.objects.filter(event_type="candidate_created", payload__candidate_id=candidate.id).exists()
        )

    def test_create_candidate_requires_name(self) -> None:
        with self.assertRaisesMessage(VotingError, "Candidate name is required."):
            create_candidate(name="   ")

    def test_update_changes_display_fields_only(self) -> None:
        candidate = Candidate.objects.create(name="Dave", vote_count=0)

        updated = update_candidate(candidate_id=candidate.id, bio="New bio", actor="admin")

        self.assertEqual(updated.bio, "New bio")
        self.assertEqual(updated.name, "Dave")
        entry = AuditLogEntry.objects.get(event_type="candidate_updated")
        self.assertEqual(entry.payload["fields"], ["bio"])

    def test_update_rejects_counter_and_archive_fields(self) -> None:
        candidate = Candidate.objects.create(name="Dave")

        with self.assertRaises(VotingError):
            update_candidate(candidate_id=candidate.id, vote_count="50")
        with self.assertRaises(VotingError):
            update_candidate(candidate_id=candidate.id, is_archived="true")

        candidate.refresh_from_db()
        self.assertEqual(candidate.vote_count, 0)
        self.assertFalse(candidate.is_archived)

    def test_update_without_changes_writes_no_audit(self) -> None:
        candidate = Candidate.objects.create(name="Dave")

        update_candidate(candidate_id=candidate.id, name="Dave")

        self.assertFalse(AuditLogEntry.objects.filter(event_type="candidate_updated").exists())

    def test_update_rejects_blank_name(self) -> None:
        candidate = Candidate.objects.create(name="Dave")

        with self.assertRaisesMessage(VotingError, "Candidate name is required."):
            update_candidate(candidate_id=candidate.id, name=" ")
