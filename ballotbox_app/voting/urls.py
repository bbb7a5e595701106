from django.urls import path

from voting import views_admin, views_votes

urlpatterns = [
    path("vote", views_votes.vote, name="vote"),
    path("candidates", views_votes.candidates, name="candidates"),
    path("voters", views_votes.voters, name="voters"),
    path("voting-window", views_votes.voting_window, name="voting-window"),

    path("admin/voting-window", views_admin.voting_window_update, name="admin-voting-window"),
    path("admin/candidates", views_admin.candidates, name="admin-candidates"),
    path("admin/candidates/<int:candidate_id>", views_admin.candidate_detail, name="admin-candidate-detail"),
    path(
        "admin/candidates/<int:candidate_id>/archive",
        views_admin.candidate_archive,
        name="admin-candidate-archive",
    ),
    path(
        "admin/candidates/<int:candidate_id>/restore",
        views_admin.candidate_restore,
        name="admin-candidate-restore",
    ),
    path("admin/tallies/reconcile", views_admin.tallies_reconcile, name="admin-tallies-reconcile"),
    path("admin/voters", views_admin.voters, name="admin-voters"),
    path("admin/voters/<str:voter_id>", views_admin.voter_delete, name="admin-voter-delete"),
    path("admin/analytics", views_admin.analytics, name="admin-analytics"),
]
