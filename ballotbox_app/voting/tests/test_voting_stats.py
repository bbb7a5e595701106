from __future__ import annotations

import datetime

from django.test import TestCase
from django.utils import timezone

from voting.candidate_lifecycle import archive_candidate, delete_candidate_permanently
from voting.models import Candidate, Vote, Voter
from voting.voting_services import cast_vote
from voting.voting_stats import (
    all_voters,
    candidate_standings,
    election_analytics,
    recent_votes,
    voters_who_voted,
    votes_per_day,
    voting_overview,
)


class VotingStatsTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = Candidate.objects.create(name="Alice")
        self.bob = Candidate.objects.create(name="Bob")
        self.carol = Candidate.objects.create(name="Carol")
        for voter_id in ("v1", "v2", "v3", "v4"):
            Voter.objects.create(voter_id=voter_id, display_name=voter_id.upper())
        cast_vote(voter_id="v1", candidate_id=self.bob.id)
        cast_vote(voter_id="v2", candidate_id=self.bob.id)
        cast_vote(voter_id="v3", candidate_id=self.alice.id)

    def test_standings_order_by_count_then_name(self) -> None:
        names = [row["name"] for row in candidate_standings()]
        self.assertEqual(names, ["Bob", "Alice", "Carol"])

        bob = candidate_standings()[0]
        self.assertEqual(bob["vote_count"], 2)
        self.assertFalse(bob["is_archived"])
        self.assertIsNone(bob["archived_at"])

    def test_archived_candidates_are_hidden_from_public_standings(self) -> None:
        archive_candidate(candidate_id=self.alice.id)

        self.assertEqual([row["name"] for row in candidate_standings()], ["Bob", "Carol"])
        self.assertEqual([row["name"] for row in candidate_standings(archived_only=True)], ["Alice"])
        self.assertEqual(len(candidate_standings(include_archived=True)), 3)

    def test_recent_votes_newest_first_and_limited(self) -> None:
        rows = recent_votes(limit=2)

        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["voter_id"], "v3")
        self.assertEqual(rows[0]["candidate_name"], "Alice")
        self.assertEqual(rows[1]["voter_id"], "v2")

    def test_voters_who_voted_skips_voters_without_vote_row(self) -> None:
        delete_candidate_permanently(candidate_id=self.alice.id)

        rows = voters_who_voted()

        self.assertEqual({row["voter_id"] for row in rows}, {"v1", "v2"})
        self.assertTrue(all(row["candidate_name"] == "Bob" for row in rows))

    def test_all_voters_includes_non_voters_and_orphaned_voters(self) -> None:
        delete_candidate_permanently(candidate_id=self.alice.id)

        rows = {row["voter_id"]: row for row in all_voters()}

        self.assertEqual(set(rows), {"v1", "v2", "v3", "v4"})

        self.assertFalse(rows["v4"]["has_voted"])
        self.assertIsNone(rows["v4"]["vote"])

        # v3 voted for the deleted candidate: still marked, no vote row left.
        self.assertTrue(rows["v3"]["has_voted"])
        self.assertIsNone(rows["v3"]["vote"])

        self.assertTrue(rows["v1"]["has_voted"])
        self.assertEqual(rows["v1"]["vote"]["candidate_id"], self.bob.id)
        self.assertEqual(rows["v1"]["vote"]["candidate_name"], "Bob")

    def test_all_voters_newest_registration_first(self) -> None:
        Voter.objects.create(voter_id="v0")

        self.assertEqual(all_voters()[0]["voter_id"], "v0")

    def test_overview_counts_and_participation(self) -> None:
        overview = voting_overview()

        self.assertEqual(
            overview,
            {
                "total_voters": 4,
                "total_candidates": 3,
                "total_votes": 3,
                "voters_voted": 3,
                "participation_rate": "75.0",
            },
        )

    def test_overview_with_no_voters(self) -> None:
        Vote.objects.all().delete()
        Voter.objects.all().delete()

        self.assertEqual(voting_overview()["participation_rate"], "0")

    def test_votes_per_day_buckets_by_utc_day(self) -> None:
        now = timezone.now()
        two_days_ago = now - datetime.timedelta(days=2)
        Vote.objects.filter(voter_id="v1").update(created_at=two_days_ago)
        Vote.objects.filter(voter_id="v2").update(created_at=now - datetime.timedelta(days=30))

        trend = votes_per_day(days=7, now=now)

        self.assertEqual(len(trend), 7)
        keys = list(trend.keys())
        self.assertEqual(keys[-1], now.astimezone(datetime.UTC).date().isoformat())
        self.assertEqual(trend[two_days_ago.astimezone(datetime.UTC).date().isoformat()], 1)
        self.assertEqual(trend[keys[-1]], 1)
        self.assertEqual(sum(trend.values()), 2)

    def test_election_analytics_shape(self) -> None:
        data = election_analytics(recent_limit=5, trend_days=3)

        self.assertEqual(set(data), {"overview", "candidates", "recent_votes", "voting_trend"})
        self.assertEqual(len(data["recent_votes"]), 3)
        self.assertEqual(len(data["voting_trend"]), 3)
