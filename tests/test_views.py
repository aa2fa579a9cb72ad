import json

import pytest
from django.test import Client

API = "/api"


@pytest.fixture(autouse=True)
def map_settings(settings, listings_csv, credentials_csv):
    settings.MAP_DATA_SOURCE = str(listings_csv)
    settings.MAP_CREDENTIALS_SOURCE = str(credentials_csv)
    settings.MAP_PIPELINE_PRESET = "extended"
    settings.MAP_FACET_MODE = None
    return settings


def _post(client, path, payload=None):
    return client.post(
        f"{API}{path}",
        data=json.dumps(payload or {}),
        content_type="application/json",
    )


@pytest.fixture
def logged_in(client):
    response = _post(client, "/login/", {"user": "agent", "password": "s3cret"})
    assert response.status_code == 200
    return client


def test_endpoints_require_login(client):
    assert client.get(f"{API}/filters/").status_code == 401
    assert _post(client, "/apply/").status_code == 401


def test_login_rejects_bad_credentials(client):
    response = _post(client, "/login/", {"user": "agent", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid username or password."


def test_login_requires_both_fields(client):
    assert _post(client, "/login/", {"user": "agent"}).status_code == 400


@pytest.mark.parametrize("user", [" agent", "agent ", "Agent"])
def test_login_username_must_match_exactly(client, user):
    response = _post(client, "/login/", {"user": user, "password": "s3cret"})

    assert response.status_code == 401
    assert client.get(f"{API}/filters/").status_code == 401


def test_login_survives_browser_session_end(logged_in):
    returning = Client()
    returning.cookies["map_login"] = logged_in.cookies["map_login"].value

    assert returning.get(f"{API}/filters/").status_code == 200


def test_drafts_do_not_survive_browser_session_end(logged_in):
    _post(logged_in, "/filters/toggle/", {"field": "Area", "option": "Bopal"})
    returning = Client()
    returning.cookies["map_login"] = logged_in.cookies["map_login"].value

    body = returning.get(f"{API}/filters/").json()

    assert all(item["selected"] == [] for item in body["filters"])


def test_tampered_login_cookie_is_rejected(client):
    client.cookies["map_login"] = "agent"

    assert client.get(f"{API}/filters/").status_code == 401


def test_filters_payload(logged_in):
    body = logged_in.get(f"{API}/filters/").json()

    assert body["facet_mode"] == "multi"
    assert body["date_cutoff_enabled"] is True
    assert [item["field"] for item in body["filters"]] == ["Area", "BHK", "Possession"]
    assert body["price_range"]["lo"] == 45
    assert body["price_range"]["hi"] == pytest.approx(216)


def test_apply_flow(logged_in):
    applied = _post(logged_in, "/apply/").json()
    assert applied["version"] == 1
    assert applied["total"] == 4
    assert [group["count"] for group in applied["groups"]] == [2, 1, 1]

    draft = _post(logged_in, "/filters/toggle/", {"field": "Area", "option": "Bopal"}).json()
    area = next(item for item in draft["filters"] if item["field"] == "Area")
    assert area["selected"] == ["Bopal"]

    applied = _post(logged_in, "/apply/").json()
    assert applied["version"] == 2
    assert applied["total"] == 2
    assert applied["groups"] == [
        {"index": 0, "key": "23.0301|72.4630", "lat": 23.0301, "lng": 72.463, "count": 2}
    ]

    detail = logged_in.get(f"{API}/groups/0/").json()
    assert [item["BHK"] for item in detail["items"]] == ["2 BHK", "3 BHK"]
    assert "Latitude" not in detail["items"][0]

    assert logged_in.get(f"{API}/groups/5/").status_code == 404


def test_draft_changes_wait_for_apply(logged_in):
    _post(logged_in, "/apply/")
    _post(logged_in, "/filters/price/", {"lo": 100, "hi": 140})

    csv_response = logged_in.get(f"{API}/download/")
    assert csv_response.status_code == 200
    lines = csv_response.content.decode("utf-8").strip().splitlines()
    assert len(lines) == 5

    applied = _post(logged_in, "/apply/").json()
    assert applied["total"] == 0
    assert applied["summary"].startswith("No listings match")


def test_select_all_and_clear(logged_in):
    draft = _post(logged_in, "/filters/select-all/", {"field": "BHK"}).json()
    bhk = next(item for item in draft["filters"] if item["field"] == "BHK")
    assert bhk["selected"] == bhk["options"]

    draft = _post(logged_in, "/filters/clear/", {"field": "BHK"}).json()
    bhk = next(item for item in draft["filters"] if item["field"] == "BHK")
    assert bhk["selected"] == []


def test_date_cutoff_endpoint(logged_in):
    _post(logged_in, "/filters/cutoff/", {"date": "2026-12-31"})

    applied = _post(logged_in, "/apply/").json()

    assert applied["total"] == 2
    assert "possession by Dec 2026" in applied["summary"]


def test_bad_requests(logged_in):
    assert _post(logged_in, "/filters/toggle/", {"field": "Area", "option": "Mars"}).status_code == 400
    assert _post(logged_in, "/filters/toggle/", {"field": "Area"}).status_code == 400
    assert _post(logged_in, "/filters/select/", {"field": "Area", "option": "Bopal"}).status_code == 400
    assert _post(logged_in, "/filters/price/", {"lo": "cheap", "hi": 10}).status_code == 400
    assert _post(logged_in, "/filters/cutoff/", {"date": "someday"}).status_code == 400


def test_map_shows_every_listing_before_apply(logged_in):
    body = logged_in.get(f"{API}/filters/").json()
    assert body["applied"]["version"] == 0
    assert body["applied"]["total"] == 4
    assert [group["count"] for group in body["applied"]["groups"]] == [2, 1, 1]

    listing = logged_in.get(f"{API}/groups/").json()
    assert listing["groups"] == body["applied"]["groups"]

    detail = logged_in.get(f"{API}/groups/0/").json()
    assert [item["BHK"] for item in detail["items"]] == ["2 BHK", "3 BHK"]

    csv_response = logged_in.get(f"{API}/download/")
    assert csv_response.status_code == 200
    assert len(csv_response.content.decode("utf-8").strip().splitlines()) == 5


def test_draft_edits_do_not_move_initial_pins(logged_in):
    _post(logged_in, "/filters/toggle/", {"field": "Area", "option": "Bopal"})

    body = logged_in.get(f"{API}/groups/").json()

    assert body["version"] == 0
    assert body["total"] == 4


def test_single_select_mode(settings, logged_in):
    settings.MAP_FACET_MODE = "single"

    draft = _post(logged_in, "/filters/select/", {"field": "BHK", "option": "2 BHK"}).json()
    assert draft["facet_mode"] == "single"

    applied = _post(logged_in, "/apply/").json()
    assert applied["total"] == 2

    _post(logged_in, "/filters/select/", {"field": "BHK", "option": None})
    assert _post(logged_in, "/apply/").json()["total"] == 4
    assert _post(logged_in, "/filters/toggle/", {"field": "BHK", "option": "2 BHK"}).status_code == 400


def test_reload_resets_drafts(logged_in):
    _post(logged_in, "/filters/toggle/", {"field": "Area", "option": "Bopal"})

    draft = _post(logged_in, "/reload/").json()

    assert all(item["selected"] == [] for item in draft["filters"])
    assert draft["version"] == 0


def test_unavailable_source_returns_503(settings, logged_in, tmp_path):
    settings.MAP_DATA_SOURCE = str(tmp_path / "gone.csv")

    assert logged_in.get(f"{API}/filters/").status_code == 503


def test_logout(logged_in):
    _post(logged_in, "/logout/")

    assert logged_in.get(f"{API}/filters/").status_code == 401


def test_logout_clears_login_cookie(logged_in):
    _post(logged_in, "/logout/")

    assert logged_in.cookies["map_login"].value == ""
