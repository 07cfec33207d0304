"""Tests for identity persistence and the login lifecycle."""

import asyncio
import json
import os
import stat
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from ninja_wallet.identity import (
    AuthClient,
    IdentityManager,
    LoginFailure,
    LoginSuccess,
)
from ninja_wallet.models import Identity, StatusKind
from ninja_wallet.shared.status import StatusNotifier

PROVIDER = "http://rdmx6-jaaaa-aaaaa-aaadq-cai.localhost:4943"
ONE_DAY_NS = 24 * 60 * 60 * 1_000_000_000


@pytest.mark.unit
class TestIdentityPayload:
    def test_parses_provider_payload(self):
        payload = json.dumps(
            {
                "principal": "2vxsx-fae",
                "delegation": "abc",
                "expiration": 1_900_000_000_000_000_000,
            }
        )
        identity = Identity.from_provider_payload(payload)
        assert identity.principal == "2vxsx-fae"
        assert identity.delegation == "abc"
        assert identity.expires_at == datetime.fromtimestamp(1_900_000_000, tz=timezone.utc)

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[1, 2]",
            json.dumps({"principal": "2vxsx-fae", "expiration": 1}),
            json.dumps({"principal": "", "delegation": "abc", "expiration": 1}),
            json.dumps({"principal": "p", "delegation": "abc"}),
            json.dumps({"principal": "p", "delegation": "abc", "expiration": "soon"}),
        ],
    )
    def test_rejects_malformed_payload(self, payload):
        with pytest.raises(ValueError):
            Identity.from_provider_payload(payload)

    def test_round_trips_through_dict(self, identity):
        assert Identity.from_dict(identity.to_dict()) == identity

    def test_is_expired(self, identity):
        assert identity.is_expired() is False
        assert identity.is_expired(now=identity.expires_at) is True


@pytest.mark.unit
class TestAuthClient:
    def test_load_without_file(self, auth_client):
        assert auth_client.load() is None

    def test_save_and_load(self, auth_client, identity):
        auth_client.save(identity)
        assert auth_client.load() == identity

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_saved_file_is_private(self, auth_client, identity):
        auth_client.save(identity)
        mode = stat.S_IMODE(os.stat(auth_client.identity_file).st_mode)
        assert mode == 0o600

    def test_revoke_removes_file(self, auth_client, identity):
        auth_client.save(identity)
        auth_client.revoke()
        assert not auth_client.identity_file.exists()
        auth_client.revoke()


@pytest.mark.asyncio
class TestIdentityManager:
    async def test_initialize_without_identity(self, auth_client):
        manager = IdentityManager(auth_client, StatusNotifier())
        assert await manager.initialize() is False
        assert manager.is_authenticated is False

    async def test_initialize_restores_identity(self, auth_client, identity):
        auth_client.save(identity)
        manager = IdentityManager(auth_client, StatusNotifier())

        assert await manager.initialize() is True
        assert manager.identity == identity

    async def test_initialize_ignores_expired_identity(self, auth_client, identity):
        auth_client.save(
            replace(identity, expires_at=datetime.now(timezone.utc) - timedelta(hours=1))
        )
        manager = IdentityManager(auth_client, StatusNotifier())

        assert await manager.initialize() is False
        assert manager.identity is None

    async def test_initialize_reports_corrupt_storage(self, auth_client):
        auth_client.storage_dir.mkdir(parents=True)
        auth_client.identity_file.write_text("{not json", encoding="utf-8")
        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier)

        assert await manager.initialize() is False
        assert notifier.current.kind == StatusKind.ERROR
        assert notifier.current.text.startswith("Init error: ")
        notifier.clear()

    async def test_login_persists_identity(
        self, auth_client, identity, approving_authenticator
    ):
        manager = IdentityManager(auth_client, StatusNotifier(), approving_authenticator)

        result = await manager.login(PROVIDER, ONE_DAY_NS * 7)

        assert result == LoginSuccess(identity)
        assert manager.is_authenticated is True
        assert auth_client.load() == identity
        assert approving_authenticator.calls == [(PROVIDER, ONE_DAY_NS * 7)]

    async def test_login_caps_lifetime(self, auth_client, identity):
        long_lived = replace(
            identity, expires_at=datetime.now(timezone.utc) + timedelta(days=30)
        )

        async def authenticator(provider_url, max_time_to_live):
            return LoginSuccess(long_lived)

        manager = IdentityManager(auth_client, StatusNotifier(), authenticator)
        result = await manager.login(PROVIDER, ONE_DAY_NS)

        assert isinstance(result, LoginSuccess)
        assert result.identity.expires_at <= datetime.now(timezone.utc) + timedelta(days=1)

    async def test_login_failure_is_reported(self, auth_client):
        async def authenticator(provider_url, max_time_to_live):
            return LoginFailure("UserInterrupt")

        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier, authenticator)

        result = await manager.login(PROVIDER)

        assert result == LoginFailure("UserInterrupt")
        assert manager.is_authenticated is False
        assert notifier.current.text == "Login failed: UserInterrupt"
        assert auth_client.load() is None
        notifier.clear()

    async def test_login_authenticator_exception_becomes_failure(self, auth_client):
        async def authenticator(provider_url, max_time_to_live):
            raise RuntimeError("provider window closed")

        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier, authenticator)

        result = await manager.login(PROVIDER)

        assert result == LoginFailure("provider window closed")
        notifier.clear()

    async def test_login_without_authenticator(self, auth_client):
        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier)

        result = await manager.login(PROVIDER)

        assert isinstance(result, LoginFailure)
        notifier.clear()

    async def test_logout_revokes(self, auth_client, identity, approving_authenticator):
        manager = IdentityManager(auth_client, StatusNotifier(), approving_authenticator)
        await manager.login(PROVIDER)

        assert await manager.logout() is True
        assert manager.identity is None
        assert auth_client.load() is None

    async def test_login_dropped_when_logout_interrupts_provider_flow(
        self, auth_client, identity
    ):
        release = asyncio.Event()

        async def authenticator(provider_url, max_time_to_live):
            await release.wait()
            return LoginSuccess(identity)

        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier, authenticator)

        login = asyncio.create_task(manager.login(PROVIDER))
        await asyncio.sleep(0)
        await manager.logout()
        release.set()
        result = await login

        assert isinstance(result, LoginFailure)
        assert manager.is_authenticated is False
        assert auth_client.load() is None
        notifier.clear()

    async def test_logout_reports_revoke_failure(self, auth_client, identity, monkeypatch):
        def failing_revoke():
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(auth_client, "revoke", failing_revoke)
        notifier = StatusNotifier()
        manager = IdentityManager(auth_client, notifier)
        manager._identity = identity

        assert await manager.logout() is False
        assert manager.identity is None
        assert notifier.current.text == "Logout error: read-only filesystem"
        notifier.clear()
