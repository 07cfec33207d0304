"""Session orchestration for Ninja Wallet.

``WalletSession`` drives the session state machine::

    LOGGED_OUT -> AUTHENTICATING -> WALLET_UNINITIALIZED -> WALLET_READY
         ^                                                       |
         +-------------------------- logout ---------------------+

It owns the busy flag that keeps user-triggered remote operations from
overlapping, and the session generation that makes late results from a
previous session harmless.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Callable

from ninja_wallet import state as transitions
from ninja_wallet.config import WalletConfig
from ninja_wallet.features.transfer.formatting import explorer_url
from ninja_wallet.features.transfer.service import TransactionWorkflow
from ninja_wallet.features.wallet.service import WalletController
from ninja_wallet.identity import (
    AuthClient,
    Authenticator,
    IdentityManager,
    LoginFailure,
)
from ninja_wallet.ledger import RemoteHandle
from ninja_wallet.models import BuildResult, TransactionReceipt
from ninja_wallet.session import SessionFactory
from ninja_wallet.shared.clipboard import CopyResult, copy_text
from ninja_wallet.shared.errors import ClipboardError, WalletError, describe_error
from ninja_wallet.shared.network import NetworkError
from ninja_wallet.shared.status import StatusNotifier
from ninja_wallet.state import SessionPhase, SessionState, SessionStore, WalletTab

logger = logging.getLogger(__name__)


class WalletSession:
    def __init__(
        self,
        config: WalletConfig,
        authenticator: Authenticator | None = None,
        auth_client: AuthClient | None = None,
        session_factory: SessionFactory | None = None,
        notifier: StatusNotifier | None = None,
        copier: Callable[[str], CopyResult] = copy_text,
        open_url: Callable[[str], bool] = webbrowser.open,
    ):
        self.config = config
        self.notifier = notifier or StatusNotifier(config.status.message_duration)
        self.store = SessionStore()
        self.identity = IdentityManager(
            auth_client or AuthClient(config.storage_dir),
            self.notifier,
            authenticator,
        )
        self.session_factory = session_factory or SessionFactory(config)
        self.wallet = WalletController(self.store, self.notifier)
        self.transfers = TransactionWorkflow(
            self.store, self.notifier, self.wallet, config.transfer
        )
        self.handle: RemoteHandle | None = None
        self._copier = copier
        self._open_url = open_url
        self._copied_timer: asyncio.TimerHandle | None = None

    @property
    def state(self) -> SessionState:
        return self.store.state

    @property
    def address(self) -> str | None:
        address = self.store.state.address
        return address.value if address else None

    def _begin(self, operation: str) -> bool:
        if self.store.state.busy:
            logger.info("Ignoring %s: another operation is in flight", operation)
            return False
        self.store.apply(transitions.busy_changed, True)
        return True

    def _end(self) -> None:
        self.store.apply(transitions.busy_changed, False)

    async def start(self) -> bool:
        """Restore a previous session and, if there is one, set up the wallet."""
        if not await self.identity.initialize():
            return False

        if not self._begin("start"):
            return False
        try:
            generation = self.store.new_generation()
            self.store.apply(transitions.authenticated)
            await self._connect(generation)
            return True
        finally:
            self._end()

    async def _connect(self, generation: int) -> None:
        identity = self.identity.identity
        if identity is None:
            return

        try:
            handle = await self.session_factory.create_handle(identity)
        except (WalletError, NetworkError) as e:
            if self.store.is_current(generation):
                logger.error("Could not create remote handle: %s", e)
                self.notifier.error(f"Error: {describe_error(e)}")
            return

        if not self.store.is_current(generation):
            return
        self.handle = handle
        await self.wallet.bootstrap(handle, generation)

    async def login(self) -> bool:
        if not self._begin("login"):
            return False

        started_in = self.store.generation
        try:
            self.notifier.info("Connecting to Internet Identity...")
            self.store.apply(transitions.authenticating)

            result = await self.identity.login(
                self.config.identity_provider, self.config.max_time_to_live
            )
            if self.store.generation != started_in:
                logger.info("Session changed while logging in; discarding login result")
                return False
            if isinstance(result, LoginFailure):
                self.store.apply(transitions.login_failed)
                return False

            generation = self.store.new_generation()
            self.handle = None
            self.store.apply(transitions.authenticated)
            await self._connect(generation)
            # Bootstrap errors stay on the status line.
            if (
                self.store.is_current(generation)
                and self.store.state.phase == SessionPhase.WALLET_READY
            ):
                self.notifier.success("Successfully logged in!")
            return True
        except Exception as e:
            logger.error("Login error: %s", e, exc_info=True)
            if not self.store.state.authenticated:
                self.store.apply(transitions.login_failed)
            self.notifier.error(f"Login error: {e}")
            return False
        finally:
            self._end()

    async def logout(self) -> None:
        """Always ends logged out, even while another call is in flight."""
        self.store.new_generation()
        self.handle = None
        self.transfers.cancel_scheduled_refresh()
        self._cancel_copied_timer()
        self.store.apply(transitions.logged_out)

        if await self.identity.logout():
            self.notifier.info("Logged out successfully")

    async def refresh_balance(self) -> bool:
        if not self._begin("refresh"):
            return False
        try:
            return await self.wallet.refresh_balance(
                self.handle, self.address, generation=self.store.generation
            )
        finally:
            self._end()

    def update_pending(
        self, to_address: str | None = None, amount: str | None = None
    ) -> None:
        self.store.apply(transitions.pending_updated, to_address, amount)

    def switch_tab(self, tab: WalletTab) -> None:
        self.store.apply(transitions.tab_switched, tab)

    async def send(self) -> TransactionReceipt | None:
        if not self._begin("send"):
            return None
        try:
            state = self.store.state
            return await self.transfers.send(
                self.handle,
                self.address,
                state.pending.to_address,
                state.pending.amount,
                generation=self.store.generation,
            )
        finally:
            self._end()

    async def build_transaction(self) -> BuildResult | None:
        if not self._begin("build"):
            return None
        try:
            pending = self.store.state.pending
            return await self.transfers.build(
                self.handle,
                self.address,
                pending.to_address,
                pending.amount,
                generation=self.store.generation,
            )
        finally:
            self._end()

    async def broadcast(self, serialized_tx: str) -> TransactionReceipt | None:
        if not self._begin("broadcast"):
            return None
        try:
            return await self.transfers.broadcast(
                self.handle,
                self.address,
                serialized_tx,
                generation=self.store.generation,
            )
        finally:
            self._end()

    async def check_service(self) -> tuple[str, str] | None:
        """Query the read-only ``health`` and ``whoami`` endpoints."""
        handle = self.handle
        if handle is None:
            self.notifier.error("Not connected to the wallet service")
            return None

        generation = self.store.generation
        try:
            health = await handle.health()
            principal = await handle.whoami()
        except (WalletError, NetworkError) as e:
            if self.store.is_current(generation):
                self.notifier.error(f"Service check failed: {describe_error(e)}")
            return None

        if not self.store.is_current(generation):
            return None
        self.notifier.info(f"Service status: {health} (caller {principal})")
        return health, principal

    async def copy_address(self) -> bool:
        address = self.address
        if not address:
            return False

        generation = self.store.generation
        result = await asyncio.to_thread(self._copier, address)
        if not self.store.is_current(generation):
            return False

        if not result.success:
            error = ClipboardError("no clipboard mechanism accepted the address")
            logger.warning("Copy failed: %s", error)
            self.notifier.error("Failed to copy address")
            return False

        self.store.apply(transitions.copied_changed, True)
        self.notifier.success("Address copied to clipboard!")

        self._cancel_copied_timer()
        self._copied_timer = asyncio.get_running_loop().call_later(
            self.config.status.copied_indicator_duration,
            self._reset_copied,
            generation,
        )
        return True

    def _reset_copied(self, generation: int) -> None:
        self._copied_timer = None
        self.store.apply(transitions.copied_changed, False, generation=generation)

    def _cancel_copied_timer(self) -> None:
        if self._copied_timer is not None:
            self._copied_timer.cancel()
            self._copied_timer = None

    def open_in_explorer(self, transaction_id: str | None = None) -> bool:
        if transaction_id is None:
            receipt = self.store.state.receipt
            if receipt is None:
                return False
            transaction_id = receipt.transaction_id

        url = explorer_url(transaction_id, self.config.explorer_url_template)
        try:
            opened = self._open_url(url)
        except webbrowser.Error as e:
            logger.warning("Could not open browser: %s", e)
            opened = False

        if opened:
            self.notifier.info("Opening transaction in Kaspa Explorer...")
        else:
            self.notifier.error(f"Could not open a browser. Visit {url}")
        return bool(opened)

    def close(self) -> None:
        self.transfers.cancel_scheduled_refresh()
        self._cancel_copied_timer()
        self.notifier.close()
