"""Builds authorized remote handles for an authenticated identity."""

from __future__ import annotations

import asyncio
import logging

from ninja_wallet.config import WalletConfig
from ninja_wallet.ledger import HttpAgent, LedgerHandle
from ninja_wallet.models import Identity
from ninja_wallet.shared.errors import TrustBootstrapError
from ninja_wallet.shared.network import NetworkError

logger = logging.getLogger(__name__)


class SessionFactory:
    def __init__(self, config: WalletConfig):
        self.config = config

    async def create_handle(self, identity: Identity) -> LedgerHandle:
        """Return a ready-to-use handle, or raise without leaking a partial one.

        Off the production network the replica's root key must be fetched
        exactly once before the handle is used.
        """
        requires_root_key = not self.config.is_production
        agent = HttpAgent(
            host=self.config.host,
            identity=identity,
            timeout_config=self.config.timeout_config,
            require_root_key=requires_root_key,
        )

        if requires_root_key:
            try:
                await asyncio.to_thread(agent.fetch_root_key)
            except NetworkError as e:
                logger.error("Trust bootstrap against %s failed: %s", agent.host, e)
                raise TrustBootstrapError(
                    f"Could not fetch root key from {agent.host}: {e}"
                ) from e

        logger.info(
            "Remote handle created for %s on %s (network=%s)",
            identity.principal,
            self.config.host,
            self.config.network,
        )
        return LedgerHandle(agent, self.config.canister_id)
