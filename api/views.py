from __future__ import annotations

import csv
import json
import logging
from functools import wraps
from typing import Dict

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from listings.credentials import verify_credentials
from listings.grouping import build_group_detail, build_marker_payload
from listings.session import AppliedView, MapSession
from listings.sheet_reader import LOADER, IngestionFailure, get_dataset
from listings.summary_generator import generate_summary

logger = logging.getLogger(__name__)

SESSION_AUTH_KEY = "is_logged_in"
SESSION_DRAFT_KEY = "map_draft"
LOGIN_COOKIE = "map_login"
LOGIN_COOKIE_SALT = "listings.login"
DEFAULT_LOGIN_MAX_AGE = 30 * 24 * 60 * 60


class _BadRequest(Exception):
    pass


def _read_payload(request) -> Dict:
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise _BadRequest("Invalid JSON body.") from exc
    if not isinstance(payload, dict):
        raise _BadRequest("JSON body must be an object.")
    return payload


def _require_text(payload: Dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise _BadRequest(f"'{key}' is required.")
    return value.strip()


def _load_session(request) -> MapSession:
    return MapSession.from_dict(request.session.get(SESSION_DRAFT_KEY), get_dataset())


def _save_session(request, session: MapSession) -> None:
    request.session[SESSION_DRAFT_KEY] = session.to_dict()


def _login_max_age() -> int:
    return int(getattr(settings, "MAP_LOGIN_MAX_AGE", DEFAULT_LOGIN_MAX_AGE))


def _is_logged_in(request) -> bool:
    """
    The login outlives the browser session through a signed cookie; drafts do not.
    """
    if request.session.get(SESSION_AUTH_KEY):
        return True
    username = request.get_signed_cookie(
        LOGIN_COOKIE, default=None, salt=LOGIN_COOKIE_SALT, max_age=_login_max_age()
    )
    if not username:
        return False
    request.session[SESSION_AUTH_KEY] = True
    return True


def map_endpoint(view):
    """
    Gate a view behind login and translate pipeline errors into JSON responses.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not _is_logged_in(request):
            return JsonResponse({"detail": "Login required."}, status=401)
        try:
            return view(request, *args, **kwargs)
        except _BadRequest as exc:
            return JsonResponse({"detail": str(exc)}, status=400)
        except IngestionFailure as exc:
            logger.error("Dataset unavailable: %s", exc)
            return JsonResponse({"detail": "Listings data is currently unavailable."}, status=503)
        except ValueError as exc:
            return JsonResponse({"detail": str(exc)}, status=400)

    return wrapper


def _draft_response(session: MapSession) -> JsonResponse:
    return JsonResponse(session.to_payload())


def _applied_payload(view: AppliedView) -> Dict:
    return {
        "version": view.version,
        "summary": generate_summary(view),
        "total": int(len(view.filtered)),
        "groups": build_marker_payload(list(view.groups)),
    }


def _applied_response(view: AppliedView) -> JsonResponse:
    return JsonResponse(_applied_payload(view))


@csrf_exempt
@require_POST
def login(request):
    try:
        payload = _read_payload(request)
    except _BadRequest as exc:
        return JsonResponse({"detail": str(exc)}, status=400)

    username = payload.get("user") or ""
    password = payload.get("password") or ""
    if not isinstance(username, str) or not isinstance(password, str):
        return JsonResponse({"detail": "Username and password must be strings."}, status=400)
    if not username or not password:
        return JsonResponse({"detail": "Please enter both username and password."}, status=400)

    try:
        valid = verify_credentials(username, password)
    except IngestionFailure as exc:
        logger.error("Credentials unavailable: %s", exc)
        return JsonResponse({"detail": "Authentication failed. Please try again."}, status=503)

    if not valid:
        return JsonResponse({"detail": "Invalid username or password."}, status=401)
    request.session[SESSION_AUTH_KEY] = True
    response = JsonResponse({"logged_in": True})
    response.set_signed_cookie(
        LOGIN_COOKIE,
        username,
        salt=LOGIN_COOKIE_SALT,
        max_age=_login_max_age(),
        httponly=True,
        samesite="Lax",
    )
    return response


@csrf_exempt
@require_POST
def logout(request):
    request.session.flush()
    response = JsonResponse({"logged_in": False})
    response.delete_cookie(LOGIN_COOKIE, samesite="Lax")
    return response


@require_GET
@map_endpoint
def filters(request):
    session = _load_session(request)
    _save_session(request, session)
    payload = session.to_payload()
    payload["applied"] = _applied_payload(session.applied_view())
    return JsonResponse(payload)


@require_GET
@map_endpoint
def groups(request):
    return _applied_response(_load_session(request).applied_view())


@csrf_exempt
@require_POST
@map_endpoint
def toggle_option(request):
    payload = _read_payload(request)
    session = _load_session(request)
    session.toggle_option(_require_text(payload, "field"), _require_text(payload, "option"))
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def select_all(request):
    payload = _read_payload(request)
    session = _load_session(request)
    session.select_all(_require_text(payload, "field"))
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def clear_all(request):
    payload = _read_payload(request)
    session = _load_session(request)
    session.clear_all(_require_text(payload, "field"))
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def set_selected(request):
    payload = _read_payload(request)
    session = _load_session(request)
    option = payload.get("option")
    if option is not None and not isinstance(option, str):
        raise _BadRequest("'option' must be a string or null.")
    session.set_selected(_require_text(payload, "field"), option.strip() if option else None)
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def set_price_bounds(request):
    payload = _read_payload(request)
    if "lo" not in payload or "hi" not in payload:
        raise _BadRequest("'lo' and 'hi' are required.")
    session = _load_session(request)
    session.set_price_bounds(payload["lo"], payload["hi"])
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def set_date_cutoff(request):
    payload = _read_payload(request)
    cutoff = payload.get("date")
    if cutoff is not None and not isinstance(cutoff, str):
        raise _BadRequest("'date' must be a YYYY-MM-DD string or null.")
    session = _load_session(request)
    session.set_date_cutoff(cutoff)
    _save_session(request, session)
    return _draft_response(session)


@csrf_exempt
@require_POST
@map_endpoint
def apply_filters(request):
    session = _load_session(request)
    view = session.apply()
    _save_session(request, session)
    return _applied_response(view)


@require_GET
@map_endpoint
def group_detail(request, index: int):
    view = _load_session(request).applied_view()
    if index >= len(view.groups):
        return JsonResponse({"detail": "Requested pin is not on the map."}, status=404)
    return JsonResponse(build_group_detail(view.groups[index]))


@require_GET
@map_endpoint
def download_filtered_csv(request):
    view = _load_session(request).applied_view()
    csv_buffer = view.filtered.to_csv(index=False, quoting=csv.QUOTE_MINIMAL)
    response = HttpResponse(csv_buffer, content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="listings_v{view.version}.csv"'
    return response


@csrf_exempt
@require_POST
@map_endpoint
def reload_dataset(request):
    dataset = LOADER.load()
    if dataset is None:
        return JsonResponse({"detail": "A newer reload superseded this one."}, status=409)
    session = MapSession(dataset)
    _save_session(request, session)
    return _draft_response(session)
