"""Transfer business logic service for Ninja Wallet."""

from __future__ import annotations

import asyncio
import logging

from ninja_wallet import state as transitions
from ninja_wallet.config import TransferConfig
from ninja_wallet.features.transfer.formatting import format_balance, format_tx_id
from ninja_wallet.features.transfer.validators import check_amount
from ninja_wallet.features.wallet.service import WalletController
from ninja_wallet.ledger import RemoteHandle
from ninja_wallet.models import BuildResult, TransactionReceipt
from ninja_wallet.shared.errors import (
    TransactionError,
    ValidationError,
    WalletError,
    describe_error,
)
from ninja_wallet.shared.network import NetworkError
from ninja_wallet.shared.status import StatusNotifier
from ninja_wallet.state import SessionStore

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Please fill in all fields"


class TransactionWorkflow:
    """Composes, submits and tracks transfers.

    Sole writer of the receipt and of clearing the pending transfer.
    """

    def __init__(
        self,
        store: SessionStore,
        notifier: StatusNotifier,
        wallet: WalletController,
        config: TransferConfig | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.wallet = wallet
        self.config = config or TransferConfig()
        self._refresh_tasks: set[asyncio.Task] = set()

    def prepare(
        self,
        handle: RemoteHandle | None,
        from_address: str | None,
        to_address: str,
        amount: str,
    ) -> tuple[str, int]:
        """Check the transfer inputs and return ``(recipient, sompi)``.

        Raises ``ValidationError`` without touching the network. Funds are
        not checked here; the service answers an overdraft with an ``err``.
        """
        recipient = (to_address or "").strip()
        if (
            handle is None
            or not from_address
            or not recipient
            or not (amount or "").strip()
        ):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        result = check_amount(amount)
        if not result.ok:
            raise ValidationError(result.error or "Invalid amount")
        return recipient, result.sompi

    async def send(
        self,
        handle: RemoteHandle | None,
        from_address: str | None,
        to_address: str,
        amount: str,
        generation: int | None = None,
    ) -> TransactionReceipt | None:
        if generation is None:
            generation = self.store.generation

        try:
            recipient, sompi = self.prepare(handle, from_address, to_address, amount)
        except ValidationError as e:
            logger.info("Transfer rejected: %s", e)
            self.notifier.error(str(e))
            return None

        self.notifier.info("Sending Kaspa transaction...")
        logger.info("Sending %d sompi from %s to %s", sompi, from_address, recipient)

        try:
            receipt = await handle.send_transaction(from_address, recipient, sompi)
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return None
            error = TransactionError(describe_error(e))
            logger.error("Transaction failed: %s", error)
            self.notifier.error(f"Transaction failed: {error}")
            return None

        if not self.store.apply(
            transitions.receipt_stored, receipt, generation=generation
        ):
            return None

        logger.info(
            "Transaction %s sent, fee %s KAS",
            format_tx_id(receipt.transaction_id),
            format_balance(receipt.fee_paid),
        )
        self.notifier.success("Transaction sent successfully!")
        self.schedule_refresh(handle, from_address, generation)
        return receipt

    async def build(
        self,
        handle: RemoteHandle | None,
        from_address: str | None,
        to_address: str,
        amount: str,
        generation: int | None = None,
    ) -> BuildResult | None:
        """Build an unsigned transaction without sending it."""
        if generation is None:
            generation = self.store.generation

        try:
            recipient, sompi = self.prepare(handle, from_address, to_address, amount)
        except ValidationError as e:
            self.notifier.error(str(e))
            return None

        try:
            built = await handle.build_transaction(from_address, recipient, sompi)
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return None
            error = TransactionError(describe_error(e))
            logger.error("Transaction build failed: %s", error)
            self.notifier.error(f"Build failed: {error}")
            return None

        if not self.store.is_current(generation):
            return None
        self.notifier.success(
            f"Transaction built. Estimated fee: {format_balance(built.fee_paid)} KAS"
        )
        return built

    async def broadcast(
        self,
        handle: RemoteHandle | None,
        from_address: str | None,
        serialized_tx: str,
        generation: int | None = None,
    ) -> TransactionReceipt | None:
        if generation is None:
            generation = self.store.generation

        if handle is None or not from_address or not serialized_tx.strip():
            self.notifier.error("Nothing to broadcast")
            return None

        try:
            transaction_id = await handle.broadcast_transaction(serialized_tx.strip())
        except (WalletError, NetworkError) as e:
            if not self.store.is_current(generation):
                return None
            error = TransactionError(describe_error(e))
            logger.error("Broadcast failed: %s", error)
            self.notifier.error(f"Broadcast failed: {error}")
            return None

        # The broadcast endpoint does not report the fee.
        receipt = TransactionReceipt(transaction_id=transaction_id, fee_paid=0)
        if not self.store.apply(
            transitions.receipt_stored, receipt, generation=generation
        ):
            return None

        self.notifier.success("Transaction broadcast successfully!")
        self.schedule_refresh(handle, from_address, generation)
        return receipt

    def schedule_refresh(
        self, handle: RemoteHandle, address: str, generation: int
    ) -> asyncio.Task:
        """Refresh the balance once, after ``refresh_delay`` seconds."""
        task = asyncio.create_task(self._refresh_later(handle, address, generation))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)
        return task

    async def _refresh_later(
        self, handle: RemoteHandle, address: str, generation: int
    ) -> None:
        await asyncio.sleep(self.config.refresh_delay)
        if not self.store.is_current(generation):
            logger.info("Skipping post-send refresh for an ended session")
            return
        await self.wallet.refresh_balance(handle, address, generation=generation)

    def cancel_scheduled_refresh(self) -> None:
        for task in list(self._refresh_tasks):
            task.cancel()
        self._refresh_tasks.clear()
