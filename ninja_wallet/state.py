"""Composite session state and its transitions.

``SessionState`` is immutable. Each transition is a pure function taking the
current state (plus arguments) and returning the next one; ``SessionStore``
is the only place a new state is installed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable

from ninja_wallet.models import Address, Balance, PendingTransfer, TransactionReceipt

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    WALLET_UNINITIALIZED = "wallet_uninitialized"
    WALLET_READY = "wallet_ready"


class WalletTab(Enum):
    RECEIVE = "receive"
    SEND = "send"


@dataclass(frozen=True)
class SessionState:
    authenticated: bool = False
    phase: SessionPhase = SessionPhase.LOGGED_OUT
    address: Address | None = None
    balance: Balance | None = None
    pending: PendingTransfer = field(default_factory=PendingTransfer)
    receipt: TransactionReceipt | None = None
    copied: bool = False
    busy: bool = False
    active_tab: WalletTab = WalletTab.RECEIVE


INITIAL_STATE = SessionState()

Transition = Callable[..., SessionState]


def authenticating(state: SessionState) -> SessionState:
    return replace(state, phase=SessionPhase.AUTHENTICATING)


def authenticated(state: SessionState) -> SessionState:
    return replace(
        state,
        authenticated=True,
        phase=SessionPhase.WALLET_UNINITIALIZED,
        address=None,
        balance=None,
        receipt=None,
        copied=False,
    )


def login_failed(state: SessionState) -> SessionState:
    return replace(state, authenticated=False, phase=SessionPhase.LOGGED_OUT)


def address_generated(state: SessionState, address: Address) -> SessionState:
    return replace(state, address=address)


def balance_loaded(state: SessionState, balance: Balance) -> SessionState:
    phase = SessionPhase.WALLET_READY if state.address is not None else state.phase
    return replace(state, balance=balance, phase=phase)


def receipt_stored(state: SessionState, receipt: TransactionReceipt) -> SessionState:
    return replace(state, receipt=receipt, pending=PendingTransfer())


def pending_updated(
    state: SessionState,
    to_address: str | None = None,
    amount: str | None = None,
) -> SessionState:
    pending = state.pending
    return replace(
        state,
        pending=PendingTransfer(
            to_address=pending.to_address if to_address is None else to_address,
            amount=pending.amount if amount is None else amount,
        ),
    )


def busy_changed(state: SessionState, busy: bool) -> SessionState:
    return replace(state, busy=busy)


def copied_changed(state: SessionState, copied: bool) -> SessionState:
    return replace(state, copied=copied)


def tab_switched(state: SessionState, tab: WalletTab) -> SessionState:
    return replace(state, active_tab=tab)


def logged_out(state: SessionState) -> SessionState:
    # An operation may still be in flight; its own exit path clears the busy flag.
    return replace(INITIAL_STATE, busy=state.busy)


class SessionStore:
    """Holds the current state and the session generation.

    The generation changes on every login and logout. Results of remote
    calls started under an older generation are discarded.
    """

    def __init__(self, state: SessionState = INITIAL_STATE):
        self._state = state
        self._generation = 0
        self._listeners: list[Callable[[SessionState], None]] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def new_generation(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation and self._state.authenticated

    def subscribe(self, listener: Callable[[SessionState], None]) -> None:
        self._listeners.append(listener)

    def apply(
        self,
        transition: Transition,
        *args: Any,
        generation: int | None = None,
    ) -> bool:
        if generation is not None and not self.is_current(generation):
            logger.info(
                "Discarding stale %s (generation %d, current %d)",
                transition.__name__,
                generation,
                self._generation,
            )
            return False

        new_state = transition(self._state, *args)
        if new_state != self._state:
            self._state = new_state
            for listener in list(self._listeners):
                try:
                    listener(new_state)
                except Exception as e:
                    logger.error("Error in state listener: %s", e)
        return True
