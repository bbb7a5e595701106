"""Voter-facing JSON endpoints: casting a vote, vote status, public results."""

import json
import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods

from voting.exceptions import VotingError
from voting.forms_voting import VoteForm
from voting.views_utils import (
    authentication_required_response,
    form_error_response,
    get_principal_id,
    parse_json_body,
    voting_error_response,
)
from voting.voter_registry import ensure_voter
from voting.voting_services import cast_vote, get_vote_status
from voting.voting_stats import candidate_standings, voters_who_voted
from voting.voting_window import get_voting_window

logger = logging.getLogger(__name__)


@require_http_methods(["GET", "POST"])
def vote(request: HttpRequest) -> JsonResponse:
    voter_id = get_principal_id(request)
    if not voter_id:
        return authentication_required_response()

    # First sight of an authenticated principal registers them as a voter.
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated and user.get_username() == voter_id:
        ensure_voter(voter_id=voter_id, display_name=user.get_full_name(), email=getattr(user, "email", ""))
    else:
        ensure_voter(voter_id=voter_id)

    if request.method == "GET":
        return _vote_status(voter_id=voter_id)
    return _vote_submit(request, voter_id=voter_id)


def _vote_status(*, voter_id: str) -> JsonResponse:
    try:
        status = get_vote_status(voter_id=voter_id)
    except VotingError as exc:
        return voting_error_response(exc)

    return JsonResponse(
        {
            "ok": True,
            "has_voted": status.has_voted,
            "voted_candidate_id": status.voted_candidate_id,
            "voted_at": status.voted_at.isoformat() if status.voted_at else None,
        }
    )


def _vote_submit(request: HttpRequest, *, voter_id: str) -> JsonResponse:
    try:
        data = parse_json_body(request)
    except (ValueError, json.JSONDecodeError) as exc:
        return JsonResponse({"ok": False, "error": f"Invalid input: {exc}"}, status=400)

    form = VoteForm(data)
    if not form.is_valid():
        return form_error_response(form)

    try:
        receipt = cast_vote(voter_id=voter_id, candidate_id=form.cleaned_data["candidate_id"])
    except VotingError as exc:
        return voting_error_response(exc)

    return JsonResponse(
        {
            "ok": True,
            "message": "Vote recorded successfully.",
            "vote_id": receipt.vote_id,
            "candidate_id": receipt.candidate_id,
            "created_at": receipt.created_at.isoformat(),
        }
    )


@require_GET
def candidates(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"candidates": candidate_standings()})


@require_GET
def voters(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"voters": voters_who_voted()})


@require_GET
def voting_window(_request: HttpRequest) -> JsonResponse:
    state = get_voting_window()
    return JsonResponse(
        {
            "deadline": state.deadline.isoformat() if state.deadline else None,
            "is_open": state.is_open,
            "seconds_remaining": state.seconds_remaining,
            "now": state.now.isoformat(),
        }
    )
