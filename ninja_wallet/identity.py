"""Authentication lifecycle against the delegated identity provider."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable

from ninja_wallet.config import DEFAULT_MAX_TIME_TO_LIVE
from ninja_wallet.models import Identity
from ninja_wallet.shared.errors import AuthError, InitError
from ninja_wallet.shared.status import StatusNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginSuccess:
    identity: Identity


@dataclass(frozen=True)
class LoginFailure:
    reason: str


LoginResult = LoginSuccess | LoginFailure

# Runs the provider's interactive flow: (provider_url, max_time_to_live_ns) -> result.
Authenticator = Callable[[str, int], Awaitable[LoginResult]]

LOGGED_OUT_DURING_LOGIN = "logged out before the login completed"


class AuthClient:
    """Persists the delegated identity between runs."""

    IDENTITY_FILENAME = "identity.json"

    def __init__(self, storage_dir: Path):
        self.storage_dir = storage_dir
        self.identity_file = storage_dir / self.IDENTITY_FILENAME

    def load(self) -> Identity | None:
        if not self.identity_file.exists():
            return None
        with open(self.identity_file, encoding="utf-8") as f:
            data = json.load(f)
        return Identity.from_dict(data)

    def save(self, identity: Identity) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        with open(self.identity_file, "w", encoding="utf-8") as f:
            json.dump(identity.to_dict(), f, indent=2)
        os.chmod(self.identity_file, 0o600)

    def revoke(self) -> None:
        self.identity_file.unlink(missing_ok=True)


class IdentityManager:
    def __init__(
        self,
        auth_client: AuthClient,
        notifier: StatusNotifier,
        authenticator: Authenticator | None = None,
    ):
        self.auth_client = auth_client
        self.notifier = notifier
        self.authenticator = authenticator
        self._identity: Identity | None = None
        # Bumped by logout; a login flow that straddles a logout is dropped.
        self._logout_epoch = 0

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    async def initialize(self) -> bool:
        """Restore a persisted identity. Never raises; failures leave the session logged out."""
        try:
            identity = await asyncio.to_thread(self.auth_client.load)
        except (OSError, ValueError, KeyError, TypeError) as e:
            error = InitError(str(e))
            logger.error("Failed to restore identity: %s", error, exc_info=True)
            self._identity = None
            self.notifier.error(f"Init error: {error}")
            return False

        if identity is None:
            logger.info("No persisted identity found")
            return False

        if identity.is_expired():
            logger.info("Persisted identity for %s has expired", identity.principal)
            self._identity = None
            return False

        self._identity = identity
        logger.info("Restored identity for %s", identity.principal)
        return True

    async def login(
        self, provider_url: str, max_time_to_live: int = DEFAULT_MAX_TIME_TO_LIVE
    ) -> LoginResult:
        epoch = self._logout_epoch
        if self.authenticator is None:
            result: LoginResult = LoginFailure("no identity provider flow is available")
        else:
            try:
                result = await self.authenticator(provider_url, max_time_to_live)
            except Exception as e:
                logger.error("Identity provider flow raised: %s", e, exc_info=True)
                result = LoginFailure(str(e))

        if self._logout_epoch != epoch:
            logger.info("Logged out during the identity provider flow; dropping login")
            return LoginFailure(LOGGED_OUT_DURING_LOGIN)

        if isinstance(result, LoginFailure):
            self._identity = None
            self.notifier.error(f"Login failed: {result.reason}")
            return result

        identity = result.identity
        latest_expiry = datetime.now(timezone.utc) + timedelta(
            microseconds=max_time_to_live / 1000
        )
        if identity.expires_at > latest_expiry:
            identity = replace(identity, expires_at=latest_expiry)

        try:
            await asyncio.to_thread(self.auth_client.save, identity)
        except OSError as e:
            # The session still works; it just will not survive a restart.
            logger.warning("Could not persist identity: %s", e)

        if self._logout_epoch != epoch:
            # Logout revoked before our save landed; remove the file again.
            try:
                await asyncio.to_thread(self.auth_client.revoke)
            except OSError as e:
                logger.error("Failed to revoke identity saved after logout: %s", e)
            return LoginFailure(LOGGED_OUT_DURING_LOGIN)

        self._identity = identity
        logger.info("Logged in as %s", identity.principal)
        return LoginSuccess(identity)

    async def logout(self) -> bool:
        """Drop the identity. The session is logged out even if revoking fails."""
        self._logout_epoch += 1
        self._identity = None
        try:
            await asyncio.to_thread(self.auth_client.revoke)
        except OSError as e:
            error = AuthError(str(e))
            logger.error("Failed to revoke persisted identity: %s", error)
            self.notifier.error(f"Logout error: {error}")
            return False
        logger.info("Identity revoked")
        return True
