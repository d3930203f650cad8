"""KVService lookups: find_by_avatar, find_by_platform_identity."""

from __future__ import annotations

import pytest

from nextid_sdk.errors import ParsingError
from nextid_sdk.models.identity import Platform


async def test_find_by_avatar_parses_records(mock_kv_client, mock_transport, keypair):
    mock_transport.add("GET", "v1/kv", {
        "avatar": keypair.pk_hex(),
        "proofs": [
            {"platform": "twitter", "identity": "yeiwb", "content": {"theme": "dark"}},
            {"platform": "nextid", "identity": keypair.pk_hex(), "content": {}},
        ],
    })

    records = await mock_kv_client.find_by_avatar(keypair.pk_hex(compressed=False))

    assert [r.platform for r in records] == [Platform.TWITTER, Platform.NEXTID]
    assert records[0].content == {"theme": "dark"}
    _, _, params, _ = mock_transport.calls[0]
    assert params == {"avatar": keypair.pk_hex()}


async def test_find_by_avatar_empty(mock_kv_client, mock_transport, keypair):
    mock_transport.add("GET", "v1/kv", {"avatar": keypair.pk_hex(), "proofs": []})
    assert await mock_kv_client.find_by_avatar(keypair) == []


async def test_find_by_avatar_malformed_key_makes_no_request(mock_kv_client, mock_transport):
    with pytest.raises(ParsingError):
        await mock_kv_client.find_by_avatar("0xdeadbeef")
    assert mock_transport.calls == []


async def test_find_by_platform_identity(mock_kv_client, mock_transport, keypair, other_keypair):
    mock_transport.add("GET", "v1/kv/by_identity", {
        "values": [
            {"avatar": keypair.pk_hex(), "content": {"a": 1}},
            {"avatar": other_keypair.pk_hex(compressed=False), "content": {"b": 2}},
        ],
    })

    values = await mock_kv_client.find_by_platform_identity("Twitter", "yeiwb")

    assert [v.avatar for v in values] == [keypair, other_keypair]
    assert values[1].content == {"b": 2}
    _, _, params, _ = mock_transport.calls[0]
    assert params == {"platform": "twitter", "identity": "yeiwb"}


async def test_find_by_platform_identity_bad_avatar(mock_kv_client, mock_transport):
    mock_transport.add("GET", "v1/kv/by_identity", {"values": [{"avatar": "0x12", "content": {}}]})
    with pytest.raises(ParsingError):
        await mock_kv_client.find_by_platform_identity("twitter", "yeiwb")


async def test_response_must_be_object(mock_kv_client, mock_transport, keypair):
    mock_transport.add("GET", "v1/kv", ["not", "an", "object"])
    with pytest.raises(ParsingError):
        await mock_kv_client.find_by_avatar(keypair)


async def test_lookups_against_server(nextid_server, kv_client, keypair):
    nextid_server.kv[(keypair.pk_hex(), "twitter", "yeiwb")] = {"bio": "hello"}

    records = await kv_client.find_by_avatar(keypair)
    assert len(records) == 1
    assert records[0].identity == "yeiwb"
    assert records[0].content == {"bio": "hello"}

    values = await kv_client.find_by_platform_identity(Platform.TWITTER, "yeiwb")
    assert values[0].avatar == keypair
    assert await kv_client.find_by_platform_identity("twitter", "nobody") == []
