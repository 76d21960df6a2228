import json
from datetime import date

import httpx
import pytest

from workout_tracker.clients.workout_api import WorkoutApiError


def test_create_workout_posts_payload_and_returns_id(make_client):
    seen = {}

    def handler(request: httpx.Request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"id": 42, "title": "Morning run"})

    client = make_client(handler, token="secret")
    assert client.create_workout({"title": "Morning run"}) == "42"
    assert seen["method"] == "POST"
    assert seen["url"] == "http://workouts.test/api/workouts/"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"title": "Morning run"}


def test_no_auth_header_without_token(make_client):
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(200, json=[])

    assert make_client(handler).list_my_workouts() == []


def test_query_parameters(make_client):
    urls = []

    def handler(request):
        urls.append(request.url)
        return httpx.Response(200, json={"total": 3})

    client = make_client(handler)
    client.list_my_workouts(page=2, size=5)
    client.list_by_date_range(date(2026, 3, 1), date(2026, 3, 7))
    client.list_by_sport("CYCLING")
    client.get_statistics(date(2026, 3, 1), date(2026, 3, 31))

    assert urls[0].path == "/api/workouts/my-workouts"
    assert urls[0].params["page"] == "2"
    assert urls[1].params["startDate"] == "2026-03-01"
    assert urls[2].params["sportType"] == "CYCLING"
    assert urls[3].path == "/api/workouts/statistics"


def test_update_and_delete(make_client):
    def handler(request):
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"id": 7, "notes": "edited"})

    client = make_client(handler)
    assert client.update_workout("7", {"notes": "edited"})["notes"] == "edited"
    assert client.delete_workout("7") is True


def test_server_error_is_retryable(make_client):
    client = make_client(lambda request: httpx.Response(503, json={"message": "maintenance"}))
    with pytest.raises(WorkoutApiError) as exc:
        client.create_workout({})
    assert exc.value.retryable
    assert exc.value.status_code == 503
    assert exc.value.message == "maintenance"


def test_client_error_is_not_retryable(make_client):
    client = make_client(lambda request: httpx.Response(400, json={"error": "title is required"}))
    with pytest.raises(WorkoutApiError) as exc:
        client.create_workout({})
    assert not exc.value.retryable
    assert exc.value.message == "title is required"


def test_plain_text_error_body(make_client):
    client = make_client(lambda request: httpx.Response(404, text="not here"))
    with pytest.raises(WorkoutApiError) as exc:
        client.get_workout("99")
    assert exc.value.message == "not here"


def test_transport_error_is_retryable(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(WorkoutApiError) as exc:
        make_client(handler).create_workout({})
    assert exc.value.retryable
    assert exc.value.status_code is None
