import pytest
import requests

from tests.helpers.fakes import FakeResponse
from whoop_common.errors import TransportError, UpstreamError
from whoop_mcp.models import CollectionQuery

BASE = "https://api.prod.whoop.com/developer/v2"


@pytest.mark.parametrize(
    "method,args,path",
    [
        ("get_profile", (), "/user/profile/basic"),
        ("get_body_measurement", (), "/user/measurement/body"),
        ("get_cycle_by_id", (93845,), "/cycle/93845"),
        ("get_recovery_for_cycle", (93845,), "/cycle/93845/recovery"),
        ("get_sleep_for_cycle", (93845,), "/cycle/93845/sleep"),
        ("get_sleep_by_id", ("ecfc6a15-4661-442f-a9a4-f160dd7afae8",), "/activity/sleep/ecfc6a15-4661-442f-a9a4-f160dd7afae8"),
        ("get_workout_by_id", ("1043b8a0-1e5b-4f1e-9c1a-0d7d5f2c3e4a",), "/activity/workout/1043b8a0-1e5b-4f1e-9c1a-0d7d5f2c3e4a"),
        ("get_cycles", (CollectionQuery(),), "/cycle"),
        ("get_recovery", (CollectionQuery(),), "/recovery"),
        ("get_sleep", (CollectionQuery(),), "/activity/sleep"),
        ("get_workouts", (CollectionQuery(),), "/activity/workout"),
    ],
)
def test_endpoints_hit_fixed_paths_with_bearer(ctx, session, seed_tokens, method, args, path):
    seed_tokens(access_token="tok")
    body = {"records": [], "next_token": None}
    session.push(FakeResponse(body))

    out = getattr(ctx.api, method)(*args)

    assert out == body
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == BASE + path
    assert call["headers"] == {"Authorization": "Bearer tok"}
    assert call["params"] == {}


def test_collection_filters_are_passed_through(ctx, session, seed_tokens):
    seed_tokens()
    session.push(FakeResponse({"records": []}))

    q = CollectionQuery(start="2025-01-01T00:00:00Z", end="2025-01-08T00:00:00Z", limit=10, nextToken="abc")
    ctx.api.get_sleep(q)

    assert session.calls[0]["params"] == {
        "start": "2025-01-01T00:00:00Z",
        "end": "2025-01-08T00:00:00Z",
        "limit": "10",
        "nextToken": "abc",
    }


def test_only_present_filters_are_sent(ctx, session, seed_tokens):
    seed_tokens()
    session.push(FakeResponse({"records": []}))

    ctx.api.get_workouts(CollectionQuery(limit=5, nextToken=""))

    assert session.calls[0]["params"] == {"limit": "5"}


def test_upstream_401_carries_status_and_body(ctx, session, seed_tokens):
    seed_tokens()
    session.push(FakeResponse(status_code=401, text='{"error":"invalid_token"}'))

    with pytest.raises(UpstreamError) as ei:
        ctx.api.get_profile()

    assert ei.value.status == 401
    assert str(ei.value) == 'Failed to get profile: 401 - {"error":"invalid_token"}'


def test_transport_error_keeps_native_message(ctx, session, seed_tokens):
    seed_tokens()
    session.push(requests.ConnectionError("connection refused"))

    with pytest.raises(TransportError, match="connection refused"):
        ctx.api.get_cycles(CollectionQuery())


def test_expired_token_is_refreshed_before_data_call(ctx, session, seed_tokens):
    seed_tokens(age_ms=3600_001, access_token="old")
    session.push(
        FakeResponse({"access_token": "new", "expires_in": 3600}),
        FakeResponse({"user_id": 1}),
    )

    assert ctx.api.get_profile() == {"user_id": 1}
    assert [c["method"] for c in session.calls] == ["POST", "GET"]
    assert session.calls[1]["headers"]["Authorization"] == "Bearer new"


def test_path_identifiers_are_escaped(ctx, session, seed_tokens):
    seed_tokens()
    session.push(FakeResponse({}))
    ctx.api.get_sleep_by_id("../user")
    assert session.calls[0]["url"] == BASE + "/activity/sleep/..%2Fuser"
