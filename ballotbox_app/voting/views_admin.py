"""Administrator JSON endpoints: voting window, candidate lifecycle, tallies, voters."""

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from voting import candidate_lifecycle, tally_reconcile, voter_registry, voting_window
from voting.exceptions import VotingError
from voting.forms_voting import CandidateForm, CandidateUpdateForm, VotingDeadlineForm
from voting.permissions import VOTING_MANAGE_ELECTION, json_permission_required
from voting.views_utils import form_error_response, get_principal_id, parse_json_body, voting_error_response
from voting.voting_stats import all_voters, candidate_payload, candidate_standings, election_analytics

logger = logging.getLogger(__name__)


def _actor(request: HttpRequest) -> str | None:
    return get_principal_id(request) or None


def _json_body_or_error(request: HttpRequest) -> tuple[dict[str, object] | None, JsonResponse | None]:
    try:
        return parse_json_body(request), None
    except (ValueError, json.JSONDecodeError) as exc:
        return None, JsonResponse({"ok": False, "error": f"Invalid input: {exc}"}, status=400)


@require_http_methods(["PUT", "POST"])
@json_permission_required(VOTING_MANAGE_ELECTION)
def voting_window_update(request: HttpRequest) -> JsonResponse:
    data, error = _json_body_or_error(request)
    if error is not None:
        return error

    form = VotingDeadlineForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        window = voting_window.set_voting_deadline(
            deadline=form.cleaned_data.get("deadline"),
            actor=_actor(request),
        )
    except VotingError as exc:
        return voting_error_response(exc)

    state = voting_window.get_voting_window()
    return JsonResponse(
        {
            "ok": True,
            "deadline": window.deadline.isoformat() if window.deadline else None,
            "is_open": state.is_open,
        }
    )


@require_http_methods(["GET", "POST"])
@json_permission_required(VOTING_MANAGE_ELECTION)
def candidates(request: HttpRequest) -> JsonResponse:
    if request.method == "GET":
        # ?archived=true lists archived only, ?archived=all lists every candidate.
        archived = str(request.GET.get("archived") or "").strip().lower()
        return JsonResponse(
            {
                "candidates": candidate_standings(
                    include_archived=archived == "all",
                    archived_only=archived == "true",
                )
            }
        )

    data, error = _json_body_or_error(request)
    if error is not None:
        return error

    form = CandidateForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        candidate = candidate_lifecycle.create_candidate(**form.cleaned_data, actor=_actor(request))
    except VotingError as exc:
        return voting_error_response(exc)

    return JsonResponse({"ok": True, "candidate": candidate_payload(candidate)}, status=201)


@require_http_methods(["PUT", "DELETE"])
@json_permission_required(VOTING_MANAGE_ELECTION)
def candidate_detail(request: HttpRequest, candidate_id: int) -> JsonResponse:
    if request.method == "DELETE":
        try:
            votes_removed = candidate_lifecycle.delete_candidate_permanently(
                candidate_id=candidate_id,
                actor=_actor(request),
            )
        except VotingError as exc:
            return voting_error_response(exc)
        return JsonResponse({"ok": True, "candidate_id": candidate_id, "votes_removed": votes_removed})

    data, error = _json_body_or_error(request)
    if error is not None:
        return error

    form = CandidateUpdateForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        candidate = candidate_lifecycle.update_candidate(
            candidate_id=candidate_id,
            actor=_actor(request),
            **form.changed_payload(),
        )
    except VotingError as exc:
        return voting_error_response(exc)

    return JsonResponse({"ok": True, "candidate": candidate_payload(candidate)})


@require_POST
@json_permission_required(VOTING_MANAGE_ELECTION)
def candidate_archive(request: HttpRequest, candidate_id: int) -> JsonResponse:
    try:
        candidate = candidate_lifecycle.archive_candidate(candidate_id=candidate_id, actor=_actor(request))
    except VotingError as exc:
        return voting_error_response(exc)
    return JsonResponse({"ok": True, "candidate": candidate_payload(candidate)})


@require_POST
@json_permission_required(VOTING_MANAGE_ELECTION)
def candidate_restore(request: HttpRequest, candidate_id: int) -> JsonResponse:
    try:
        candidate = candidate_lifecycle.restore_candidate(candidate_id=candidate_id, actor=_actor(request))
    except VotingError as exc:
        return voting_error_response(exc)
    return JsonResponse({"ok": True, "candidate": candidate_payload(candidate)})


@require_POST
@json_permission_required(VOTING_MANAGE_ELECTION)
def tallies_reconcile(request: HttpRequest) -> JsonResponse:
    report = tally_reconcile.reconcile_tallies(actor=_actor(request))
    return JsonResponse(
        {
            "ok": True,
            "per_candidate": [
                {
                    "id": row.id,
                    "name": row.name,
                    "old_count": row.old_count,
                    "new_count": row.new_count,
                }
                for row in report.per_candidate
            ],
            "corrected": len(report.corrected),
        }
    )


@require_GET
@json_permission_required(VOTING_MANAGE_ELECTION)
def voters(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"voters": all_voters()})


@require_http_methods(["DELETE"])
@json_permission_required(VOTING_MANAGE_ELECTION)
def voter_delete(request: HttpRequest, voter_id: str) -> JsonResponse:
    try:
        removal = voter_registry.remove_voter(voter_id=voter_id, actor=_actor(request))
    except VotingError as exc:
        return voting_error_response(exc)
    return JsonResponse(
        {
            "ok": True,
            "voter_id": removal.voter_id,
            "had_vote": removal.had_vote,
            "candidate_id": removal.candidate_id,
        }
    )


@require_GET
@json_permission_required(VOTING_MANAGE_ELECTION)
def analytics(_request: HttpRequest) -> JsonResponse:
    return JsonResponse(
        election_analytics(
            recent_limit=settings.VOTING_RECENT_VOTES_LIMIT,
            trend_days=settings.VOTING_TREND_DAYS,
        )
    )
