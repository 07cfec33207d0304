"""Tests for building authorized remote handles."""

from dataclasses import replace
from unittest.mock import Mock, patch

import pytest
from requests.exceptions import ConnectionError

from ninja_wallet.ledger import LedgerHandle
from ninja_wallet.session import SessionFactory
from ninja_wallet.shared.errors import TrustBootstrapError

ROOT_KEY_HEX = "308182301d060d2b0601040182dc7c0503010201060c2b0601040182dc7c05030201"


def _status_response():
    response = Mock()
    response.raise_for_status = Mock()
    response.json.return_value = {"root_key": ROOT_KEY_HEX}
    return response


@pytest.mark.asyncio
async def test_local_network_fetches_root_key_once(wallet_config, identity):
    factory = SessionFactory(wallet_config)

    with patch("ninja_wallet.shared.network.requests.get") as mock_get:
        mock_get.return_value = _status_response()
        handle = await factory.create_handle(identity)

    assert isinstance(handle, LedgerHandle)
    assert mock_get.call_count == 1
    assert handle.agent.root_key == bytes.fromhex(ROOT_KEY_HEX)
    assert handle.canister_id == wallet_config.canister_id
    assert handle.agent.identity == identity


@pytest.mark.asyncio
async def test_production_network_skips_root_key(wallet_config, identity):
    config = replace(wallet_config, network="ic", host="https://ic0.app")
    factory = SessionFactory(config)

    with patch("ninja_wallet.shared.network.requests.get") as mock_get:
        handle = await factory.create_handle(identity)

    mock_get.assert_not_called()
    assert handle.agent.root_key is None
    assert handle.agent.require_root_key is False
    assert handle.agent.host == "https://ic0.app"


@pytest.mark.asyncio
async def test_trust_bootstrap_failure(wallet_config, identity):
    factory = SessionFactory(wallet_config)

    with patch("ninja_wallet.shared.network.requests.get") as mock_get:
        mock_get.side_effect = ConnectionError("refused")
        with pytest.raises(TrustBootstrapError) as exc_info:
            await factory.create_handle(identity)

    assert "Could not fetch root key" in str(exc_info.value)


@pytest.mark.asyncio
async def test_each_identity_gets_its_own_handle(wallet_config, identity):
    config = replace(wallet_config, network="ic", host="https://ic0.app")
    factory = SessionFactory(config)
    other = replace(identity, principal="aaaaa-aa")

    first = await factory.create_handle(identity)
    second = await factory.create_handle(other)

    assert first is not second
    assert second.agent.identity.principal == "aaaaa-aa"
