from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("event_type", models.CharField(max_length=64)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("actor", models.CharField(blank=True, default="", max_length=255)),
            ],
            options={
                "verbose_name_plural": "Audit log entries",
                "ordering": ("timestamp", "id"),
                "indexes": [models.Index(fields=["event_type", "timestamp"], name="audit_event_ts")],
            },
        ),
        migrations.CreateModel(
            name="Candidate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("bio", models.TextField(blank=True, default="")),
                ("image_url", models.URLField(blank=True, default="", max_length=2048)),
                ("linkedin_url", models.URLField(blank=True, default="", max_length=2048)),
                ("vote_count", models.PositiveIntegerField(default=0)),
                ("is_archived", models.BooleanField(default=False)),
                ("archived_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("-created_at", "id"),
                "permissions": [("manage_election", "Can manage candidates, the voting window and tallies")],
                "indexes": [models.Index(fields=["is_archived", "vote_count"], name="candidate_arch_count")],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            (models.Q(is_archived=False) & models.Q(archived_at__isnull=True))
                            | (models.Q(is_archived=True) & models.Q(archived_at__isnull=False))
                        ),
                        name="voting_candidate_archived_at_matches_flag",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Voter",
            fields=[
                ("voter_id", models.CharField(max_length=255, primary_key=True, serialize=False)),
                ("display_name", models.CharField(blank=True, default="", max_length=255)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("has_voted", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("-created_at", "voter_id"),
                "indexes": [models.Index(fields=["has_voted"], name="voter_has_voted")],
            },
        ),
        migrations.CreateModel(
            name="VotingWindow",
            fields=[
                (
                    "id",
                    models.PositiveSmallIntegerField(default=1, editable=False, primary_key=True, serialize=False),
                ),
                ("deadline", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(condition=models.Q(id=1), name="voting_votingwindow_singleton"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Vote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "candidate",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="votes",
                        to="voting.candidate",
                    ),
                ),
                (
                    "voter",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="vote",
                        to="voting.voter",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["created_at"], name="vote_created_at")],
            },
        ),
    ]
