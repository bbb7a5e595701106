from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from django.http import HttpRequest, HttpResponse, JsonResponse

VOTING_MANAGE_ELECTION = "voting.manage_election"

P = ParamSpec("P")
R = TypeVar("R", bound=HttpResponse)


def json_permission_required(permission: str) -> Callable[[Callable[P, R]], Callable[P, HttpResponse]]:
    """Decorator for JSON endpoints that require a single Django permission.

    Anonymous requests get a JSON 401 and authenticated ones without the
    permission a JSON 403, instead of a login redirect.
    """

    def decorator(view_func: Callable[P, R]) -> Callable[P, HttpResponse]:
        @wraps(view_func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> HttpResponse:
            request = args[0] if args else None
            if not isinstance(request, HttpRequest):
                return JsonResponse({"ok": False, "error": "Permission denied."}, status=403)

            user = getattr(request, "user", None)
            if user is None or not user.is_authenticated:
                return JsonResponse({"ok": False, "error": "Authentication required."}, status=401)
            if not user.has_perm(permission):
                return JsonResponse({"ok": False, "error": "Permission denied."}, status=403)

            return view_func(*args, **kwargs)

        return wrapper

    return decorator
