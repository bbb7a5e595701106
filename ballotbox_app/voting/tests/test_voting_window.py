from __future__ import annotations

import datetime

from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from voting.exceptions import VotingError
from voting.models import AuditLogEntry, VotingWindow
from voting.voting_window import (
    VotingWindowState,
    get_voting_window,
    is_open,
    is_voting_open,
    set_voting_deadline,
)


class IsOpenTests(SimpleTestCase):
    def test_deadline_is_exclusive(self) -> None:
        deadline = datetime.datetime(2026, 5, 1, 9, 0, tzinfo=datetime.UTC)

        self.assertTrue(is_open(now=deadline - datetime.timedelta(microseconds=1), deadline=deadline))
        self.assertFalse(is_open(now=deadline, deadline=deadline))
        self.assertFalse(is_open(now=deadline + datetime.timedelta(microseconds=1), deadline=deadline))

    def test_no_deadline_is_always_open(self) -> None:
        self.assertTrue(is_open(now=timezone.now(), deadline=None))

    def test_seconds_remaining(self) -> None:
        now = datetime.datetime(2026, 5, 1, 9, 0, tzinfo=datetime.UTC)

        self.assertIsNone(VotingWindowState(deadline=None, is_open=True, now=now).seconds_remaining)
        self.assertEqual(
            VotingWindowState(
                deadline=now + datetime.timedelta(minutes=2, milliseconds=500),
                is_open=True,
                now=now,
            ).seconds_remaining,
            120,
        )
        self.assertEqual(
            VotingWindowState(deadline=now - datetime.timedelta(hours=1), is_open=False, now=now).seconds_remaining,
            0,
        )


class VotingWindowTests(TestCase):
    def test_window_is_created_open_on_first_read(self) -> None:
        self.assertFalse(VotingWindow.objects.exists())

        state = get_voting_window()

        self.assertIsNone(state.deadline)
        self.assertTrue(state.is_open)
        self.assertEqual(VotingWindow.objects.count(), 1)

    def test_only_one_window_row_may_exist(self) -> None:
        VotingWindow.load()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                VotingWindow.objects.create(pk=2)

    def test_set_deadline_in_future_keeps_voting_open(self) -> None:
        now = timezone.now()
        deadline = now + datetime.timedelta(hours=2)

        window = set_voting_deadline(deadline=deadline, actor="admin")

        self.assertEqual(window.deadline, deadline)
        self.assertTrue(is_voting_open(now=now))
        self.assertFalse(is_voting_open(now=deadline))

    def test_set_deadline_in_past_closes_voting(self) -> None:
        set_voting_deadline(deadline=timezone.now() - datetime.timedelta(minutes=1))
        self.assertFalse(is_voting_open())

    def test_clearing_deadline_reopens_voting(self) -> None:
        set_voting_deadline(deadline=timezone.now() - datetime.timedelta(minutes=1))
        set_voting_deadline(deadline=None)

        self.assertTrue(is_voting_open())
        self.assertIsNone(VotingWindow.load().deadline)

    def test_naive_deadline_is_rejected(self) -> None:
        with self.assertRaisesMessage(VotingError, "Deadline must include a timezone."):
            set_voting_deadline(deadline=datetime.datetime(2026, 5, 1, 9, 0))

        self.assertIsNone(VotingWindow.load().deadline)

    def test_deadline_change_is_audited_with_previous_value(self) -> None:
        first = datetime.datetime(2026, 5, 1, 9, 0, tzinfo=datetime.UTC)
        second = first + datetime.timedelta(days=1)

        set_voting_deadline(deadline=first, actor="admin")
        set_voting_deadline(deadline=second, actor="admin2")

        entries = list(AuditLogEntry.objects.filter(event_type="voting_deadline_changed").order_by("id"))
        self.assertEqual(len(entries), 2)
        self.assertEqual(entries[0].payload, {"previous_deadline": None, "new_deadline": first.isoformat()})
        self.assertEqual(
            entries[1].payload,
            {"previous_deadline": first.isoformat(), "new_deadline": second.isoformat()},
        )
        self.assertEqual(entries[1].actor, "admin2")
