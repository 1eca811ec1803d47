from __future__ import annotations

import base64
import json
import logging
from datetime import datetime, timezone

from subfusion.models import AccessToken, Profile
from subfusion.profiles.access import (
    AccessState,
    evaluate_access,
    generate_expired_nodes,
    parse_expiry,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_profile(**kwargs):
    data = {"id": "p1", "enabled": True}
    data.update(kwargs)
    return Profile.model_validate(data)


def test_missing_or_disabled_profile_is_denied():
    assert evaluate_access(None, now=NOW).state is AccessState.DENIED
    assert evaluate_access(make_profile(enabled=False), now=NOW).state is AccessState.DENIED


def test_enabled_defaults_to_false():
    profile = Profile.model_validate({"id": "p1"})
    assert evaluate_access(profile, now=NOW).state is AccessState.DENIED


def test_no_expiry_is_active():
    assert evaluate_access(make_profile(), now=NOW).state is AccessState.ACTIVE


def test_past_profile_expiry_is_expired():
    decision = evaluate_access(make_profile(expiresAt="2024-01-01"), now=NOW)
    assert decision.state is AccessState.EXPIRED
    assert decision.expires_at == "2024-01-01"


def test_future_profile_expiry_is_active():
    decision = evaluate_access(make_profile(expiresAt="2030-01-01T00:00:00Z"), now=NOW)
    assert decision.state is AccessState.ACTIVE


def test_token_expiry_overrides_profile_expiry():
    profile = make_profile(expiresAt="2024-01-01")
    token = AccessToken(token="t", expires_at="2099-12-31")
    assert evaluate_access(profile, token, now=NOW).state is AccessState.ACTIVE

    profile = make_profile(expiresAt="2099-12-31")
    token = AccessToken(token="t", expires_at="2024-05-31")
    decision = evaluate_access(profile, token, now=NOW)
    assert decision.state is AccessState.EXPIRED
    assert decision.expires_at == "2024-05-31"


def test_token_without_expiry_falls_back_to_profile():
    profile = make_profile(expiresAt="2024-01-01")
    token = AccessToken(token="t")
    assert evaluate_access(profile, token, now=NOW).state is AccessState.EXPIRED


def test_unparsable_expiry_fails_open(caplog):
    with caplog.at_level(logging.WARNING):
        decision = evaluate_access(make_profile(expiresAt="someday"), now=NOW)
    assert decision.state is AccessState.ACTIVE
    assert "Unparsable expiry" in caplog.text


def test_date_only_is_utc_midnight():
    profile = make_profile(expiresAt="2024-06-01")
    at_midnight = datetime(2024, 6, 1, tzinfo=timezone.utc)
    just_after = datetime(2024, 6, 1, 0, 0, 1, tzinfo=timezone.utc)
    assert evaluate_access(profile, now=at_midnight).state is AccessState.ACTIVE
    assert evaluate_access(profile, now=just_after).state is AccessState.EXPIRED


def test_parse_expiry_formats():
    expected = datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert parse_expiry("2024-05-01") == expected
    assert parse_expiry("2024-05-01T00:00:00Z") == expected
    assert parse_expiry("2024-05-01T00:00:00.000Z") == expected
    assert parse_expiry("2024-05-01T00:00:00") == expected
    assert parse_expiry("2024-05-01T08:00:00+08:00") == expected
    assert parse_expiry(1714521600000) == expected
    assert parse_expiry("2024/05/01") == expected
    assert parse_expiry("2024/05/01 08:30") == datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
    assert parse_expiry("05/01/2024") == expected
    assert parse_expiry("May 1, 2024") == expected
    assert parse_expiry("May 01 2024") == expected
    assert parse_expiry("1 May 2024") == expected
    assert parse_expiry("Wed, 01 May 2024 00:00:00 GMT") == expected
    assert parse_expiry("not a date") is None
    assert parse_expiry("") is None
    assert parse_expiry(None) is None


def test_epoch_millisecond_expiry():
    profile = make_profile(expiresAt=1714521600000)
    assert evaluate_access(profile, now=NOW).state is AccessState.EXPIRED


def test_expired_result_shape():
    result = generate_expired_nodes("2024-01-01")
    data = result.to_dict()

    assert data["success"] is True
    assert data["subscriptions"] == []
    assert data["totalCount"] == 1
    assert data["stats"] == {"protocols": {}, "regions": {}}

    node = data["nodes"][0]
    assert node["type"] == "vmess"
    assert node["server"] == "127.0.0.1"
    assert node["port"] == 80
    assert node["subscriptionName"] == "System notice"
    assert node["name"] == (
        "[Notice] This subscription expired on 2024-01-01, please contact the administrator."
    )

    payload = json.loads(base64.b64decode(node["url"][len("vmess://"):]))
    assert payload["add"] == "127.0.0.1"
    assert payload["port"] == "80"
    assert payload["id"] == "00000000-0000-0000-0000-000000000000"
    assert payload["ps"] == node["name"]


def test_loose_date_formats_are_enforced():
    for expires_at in ("2024/01/01", "Jan 1, 2024", "January 1, 2024"):
        assert evaluate_access(make_profile(expiresAt=expires_at), now=NOW).state is AccessState.EXPIRED
