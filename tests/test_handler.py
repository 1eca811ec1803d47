from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from subfusion.config import Settings
from subfusion.core.node_parser import parse_node_info
from subfusion.core.types import SubscriptionResult
from subfusion.exceptions import ProfileNotFoundError
from subfusion.profiles.handler import handle_profile_mode

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)

SOURCES = [
    {"id": "s1", "name": "Alpha", "url": "https://alpha.example.com/sub", "enabled": True},
    {"id": "s2", "name": "Beta", "url": "https://beta.example.com/sub", "enabled": False},
    {"id": "s3", "name": "Gamma", "url": "https://gamma.example.com/sub", "enabled": True},
    {"id": "m1", "name": "", "url": "trojan://pw@home.example.com:443#HK%20Home", "enabled": True},
]


def profile(**kwargs):
    data = {
        "id": "p1",
        "customId": "legacy",
        "enabled": True,
        "subscriptions": ["s1", "s2"],
        "manualNodes": ["m1"],
        "accessTokens": [{"token": "tok", "expiresAt": "2024-01-01"}],
    }
    data.update(kwargs)
    return data


def failing_fetcher():
    fetcher = AsyncMock()
    fetcher.fetch.return_value = SubscriptionResult(
        subscription_name="Alpha",
        url="https://alpha.example.com/sub",
        success=False,
        error="HTTP 500",
    )
    return fetcher


def gamma_fetcher(vmess_link):
    async def fake_fetch(url, display_name, user_agent, custom_user_agent=None, exclude=None):
        links = [vmess_link("JP 01", server="jp.example.com"), "trojan://pw@us.example.com:443#US"]
        nodes = []
        for link in links:
            node = parse_node_info(link)
            node.subscription_name = display_name
            nodes.append(node)
        return SubscriptionResult(subscription_name=display_name, url=url, success=True, nodes=nodes)

    fetcher = AsyncMock()
    fetcher.fetch.side_effect = fake_fetch
    return fetcher


@pytest.mark.asyncio
async def test_failed_and_disabled_sources_scenario(profile_store):
    store = profile_store([profile()], SOURCES)
    fetcher = failing_fetcher()

    result = await handle_profile_mode(store, "p1", "clash.meta", fetcher=fetcher, now=NOW)
    data = result.to_dict()

    assert [s["subscriptionName"] for s in data["subscriptions"]] == ["Alpha", "Manual node"]
    assert [s["success"] for s in data["subscriptions"]] == [False, True]
    assert data["subscriptions"][0]["error"] == "HTTP 500"
    assert data["totalCount"] == 1
    assert data["nodes"][0]["server"] == "home.example.com"
    assert data["stats"] == {"protocols": {"trojan": 1}, "regions": {"HK": 1}}
    fetcher.fetch.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_or_disabled_profile_raises(profile_store):
    store = profile_store([profile(enabled=False)], SOURCES)
    with pytest.raises(ProfileNotFoundError) as excinfo:
        await handle_profile_mode(store, "p1", "ua", fetcher=failing_fetcher(), now=NOW)
    assert excinfo.value.status_code == 404
    assert excinfo.value.to_dict() == {"error": "Profile not found or disabled"}

    with pytest.raises(ProfileNotFoundError):
        await handle_profile_mode(store, "nobody", "ua", fetcher=failing_fetcher(), now=NOW)


@pytest.mark.asyncio
async def test_expired_token_short_circuits(profile_store):
    store = profile_store([profile()], SOURCES)
    fetcher = failing_fetcher()

    result = await handle_profile_mode(store, "tok", "ua", fetcher=fetcher, now=NOW)

    assert result.total_count == 1
    assert result.subscriptions == []
    assert result.protocol_stats == {}
    assert result.nodes[0].subscription_name == "System notice"
    assert "2024-01-01" in result.nodes[0].name
    fetcher.fetch.assert_not_called()


@pytest.mark.asyncio
async def test_custom_id_ignores_token_expiry(profile_store):
    store = profile_store([profile()], SOURCES)
    result = await handle_profile_mode(store, "legacy", "ua", fetcher=failing_fetcher(), now=NOW)
    assert result.total_count == 1
    assert result.nodes[0].subscription_name == "Manual node"


@pytest.mark.asyncio
async def test_transform_applied_when_requested(profile_store, vmess_link):
    store = profile_store(
        [
            profile(
                subscriptions=["s3"],
                manualNodes=["m1"],
                nodeTransform={"enabled": True, "rename": {"template": {"template": "{region}-{index}"}}},
            )
        ],
        SOURCES,
    )

    plain = await handle_profile_mode(store, "p1", "ua", False, fetcher=gamma_fetcher(vmess_link), now=NOW)
    assert [n.name for n in plain.nodes] == ["JP 01", "US", "HK Home"]

    result = await handle_profile_mode(store, "p1", "ua", True, fetcher=gamma_fetcher(vmess_link), now=NOW)
    assert [n.name for n in result.nodes] == ["JP-01", "US-01", "HK-01"]
    assert [n.subscription_name for n in result.nodes] == ["Gamma", "Gamma", "Manual node"]
    assert result.region_stats == {"JP": 1, "US": 1, "HK": 1}
    assert sum(result.protocol_stats.values()) == result.total_count == 3


@pytest.mark.asyncio
async def test_request_user_agent_falls_back_to_settings(profile_store, vmess_link):
    store = profile_store([profile(subscriptions=["s3"], manualNodes=[])], SOURCES)
    fetcher = gamma_fetcher(vmess_link)

    await handle_profile_mode(store, "p1", "", fetcher=fetcher, now=NOW, settings=Settings())

    assert fetcher.fetch.await_args.args[2] == "clash.meta"


@pytest.mark.asyncio
async def test_owned_fetcher_is_closed(profile_store):
    store = profile_store([profile()], SOURCES)
    with patch("subfusion.profiles.handler.SubscriptionFetcher") as fetcher_cls:
        instance = fetcher_cls.return_value
        instance.fetch = failing_fetcher().fetch
        instance.close = AsyncMock()

        result = await handle_profile_mode(store, "p1", "ua", now=NOW)

    fetcher_cls.assert_called_once()
    instance.close.assert_awaited_once()
    assert result.total_count == 1


@pytest.mark.asyncio
async def test_supplied_fetcher_is_left_open(profile_store):
    store = profile_store([profile()], SOURCES)
    fetcher = failing_fetcher()
    await handle_profile_mode(store, "p1", "ua", fetcher=fetcher, now=NOW)
    fetcher.close.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "extra",
    [
        {"accessTokens": [{"token": None}, "garbage"]},
        {"nodeTransform": {"enabled": True, "sort": {"enabled": True, "keys": ["server"]}}},
        {"nodeTransform": {"enabled": True, "rename": {"template": {"indexWidth": 0}}}},
        {"nodeTransform": "not a mapping"},
    ],
)
async def test_malformed_side_fields_do_not_hide_profile(profile_store, extra):
    store = profile_store([profile(subscriptions=[], **extra)], SOURCES)

    result = await handle_profile_mode(store, "p1", "ua", True, fetcher=failing_fetcher(), now=NOW)

    assert result.total_count == 1
    assert result.nodes[0].server == "home.example.com"
