"""Shared helpers for the JSON views: principal lookup, body parsing, error mapping."""

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse

from voting.exceptions import (
    AlreadyVotedError,
    CandidateNotFoundError,
    VoteConflictError,
    VoterNotFoundError,
    VotingClosedError,
    VotingError,
)

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[VotingError], int], ...] = (
    (VoterNotFoundError, 404),
    (AlreadyVotedError, 409),
    (VotingClosedError, 403),
    (CandidateNotFoundError, 404),
    (VoteConflictError, 503),
)


def get_principal_id(request: HttpRequest) -> str:
    """Return the current voter's principal id, or "" when there is none.

    The auth layer stores the resolved principal in the session; a logged-in
    Django user is the fallback (used by admins and in tests).
    """
    session = getattr(request, "session", None)
    principal = str((session.get(settings.VOTER_SESSION_KEY) if session is not None else None) or "").strip()
    if principal:
        return principal

    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(user.get_username() or "").strip()
    return ""


def parse_json_body(request: HttpRequest) -> dict[str, object]:
    """Decode a JSON object body; form-encoded POSTs fall back to request.POST."""
    content_type = str(request.content_type or "")
    if content_type.startswith("application/json"):
        raw = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object.")
        return data
    return {key: request.POST.get(key) for key in request.POST.keys()}


def form_error_response(form) -> JsonResponse:
    errors = {name: [str(msg) for msg in msgs] for name, msgs in form.errors.items()}
    first = next((msgs[0] for msgs in errors.values() if msgs), "Invalid input.")
    return JsonResponse({"ok": False, "error": first, "details": errors}, status=400)


def voting_error_response(exc: VotingError) -> JsonResponse:
    status = 400
    for exc_type, exc_status in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            status = exc_status
            break
    return JsonResponse(
        {"ok": False, "error": str(exc), "code": type(exc).__name__},
        status=status,
    )


def authentication_required_response() -> JsonResponse:
    return JsonResponse({"ok": False, "error": "Authentication required."}, status=401)
