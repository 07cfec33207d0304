"""Wallet bootstrap and balance refresh for Ninja Wallet."""

from __future__ import annotations

import logging

from ninja_wallet import state as transitions
from ninja_wallet.ledger import RemoteHandle
from ninja_wallet.shared.errors import (
    BalanceRefreshError,
    WalletError,
    WalletSetupError,
    describe_error,
)
from ninja_wallet.shared.network import NetworkError
from ninja_wallet.shared.status import StatusNotifier
from ninja_wallet.state import SessionStore

logger = logging.getLogger(__name__)


class WalletController:
    """Sole writer of the address and balance parts of the session state."""

    def __init__(self, store: SessionStore, notifier: StatusNotifier):
        self.store = store
        self.notifier = notifier

    async def bootstrap(
        self, handle: RemoteHandle, generation: int | None = None
    ) -> bool:
        """Generate the address, then fetch its balance.

        A failed address request stops the sequence. A failed balance
        request keeps the address so the user can still receive funds.
        """
        if generation is None:
            generation = self.store.generation

        self.notifier.info("Setting up your wallet...")

        try:
            address = await handle.generate_address()
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return False
            error = WalletSetupError(describe_error(e))
            logger.error("Address generation failed: %s", error)
            self.notifier.error(f"Error setting up wallet: {error}")
            return False

        if not self.store.apply(
            transitions.address_generated, address, generation=generation
        ):
            return False
        logger.info("Wallet address: %s (%s)", address.value, address.derivation_path)

        try:
            balance = await handle.get_balance(address.value)
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return False
            error = WalletSetupError(describe_error(e))
            logger.error("Initial balance fetch failed: %s", error)
            self.notifier.error(f"Error fetching balance: {error}")
            return False

        if not self.store.apply(
            transitions.balance_loaded, balance, generation=generation
        ):
            return False

        self.notifier.success("Wallet ready!")
        return True

    async def refresh_balance(
        self,
        handle: RemoteHandle | None,
        address: str | None,
        generation: int | None = None,
    ) -> bool:
        if handle is None or not address:
            return False
        if generation is None:
            generation = self.store.generation

        self.notifier.info("Refreshing balance...")

        try:
            balance = await handle.get_balance(address)
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return False
            error = BalanceRefreshError(describe_error(e))
            logger.error("Balance refresh failed: %s", error)
            self.notifier.error(f"Error: {error}")
            return False

        if not self.store.apply(
            transitions.balance_loaded, balance, generation=generation
        ):
            return False

        logger.info("Balance updated: total=%d sompi", balance.total)
        self.notifier.success("Balance updated!")
        return True
