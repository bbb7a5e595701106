import logging

from django.db import DatabaseError, connection
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from voting.models import VotingWindow

logger = logging.getLogger(__name__)


@require_GET
def healthz(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(_request: HttpRequest) -> JsonResponse:
    """Ready once the database answers and the voting tables are migrated."""
    try:
        connection.ensure_connection()
    except Exception as exc:
        logger.exception("readyz: database connection failed")
        return JsonResponse({"status": "not ready", "error": str(exc)}, status=503)

    try:
        VotingWindow.objects.only("id").exists()
    except DatabaseError as exc:
        logger.exception("readyz: voting schema unavailable")
        return JsonResponse({"status": "not ready", "error": str(exc)}, status=503)

    return JsonResponse({"status": "ready", "database": "ok", "schema": "ok"})
