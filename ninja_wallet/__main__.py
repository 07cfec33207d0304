"""Main application entry point for Ninja Wallet."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import cast

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, Footer, Header, Input, Label, Static, Tab, Tabs

from ninja_wallet.config import WalletConfig, resolve_config
from ninja_wallet.controller import WalletSession
from ninja_wallet.features.transfer.formatting import format_balance, format_tx_id
from ninja_wallet.identity import LoginFailure, LoginResult, LoginSuccess
from ninja_wallet.models import Identity, StatusKind, StatusMessage
from ninja_wallet.screens import DelegationScreen
from ninja_wallet.shared.logging import LoggingConfig, setup_logging
from ninja_wallet.state import SessionState, WalletTab
from ninja_wallet.styles import CSS

logger = logging.getLogger(__name__)


class WalletApp(App):
    CSS = CSS
    TITLE = "Kaspa Ninja Wallet"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "refresh_balance", "Refresh"),
        ("c", "copy_address", "Copy address"),
        ("e", "estimate_fee", "Estimate fee"),
        ("h", "check_service", "Service health"),
    ]

    def __init__(self, config: WalletConfig | None = None):
        super().__init__()
        self.config = config or resolve_config()
        self.session = WalletSession(self.config, authenticator=self.authenticate)

    def compose(self) -> ComposeResult:
        yield Header()

        with Container(id="login-view"):
            yield Label("🥷 kaspa ninja wallet", id="login-title")
            yield Static(
                "secure kaspa transactions on the internet computer",
                id="login-subtitle",
            )
            yield Button("connect with internet.id", id="login-button", variant="primary")

        with Container(id="wallet-view"):
            yield Label("🥷 kaspa ninja wallet", id="wallet-title")
            with Horizontal(id="balance-row"):
                yield Static(id="balance-display")
                yield Button("🔄", id="refresh-button")
                yield Button("logout", id="logout-button")
            yield Static("Setting up your wallet...", id="wallet-setup")
            yield Tabs(
                Tab("receive", id="receive-tab"),
                Tab("send", id="send-tab"),
                id="wallet-tabs",
            )
            with Container(id="receive-panel"):
                yield Static(id="address-display")
                yield Button("click to copy", id="copy-button")
                yield Static("share this address to receive kas", classes="hint")
            with Container(id="send-panel"):
                yield Label("recipient address")
                yield Input(placeholder="kaspa:...", id="recipient-input")
                yield Label("amount (kas)")
                yield Input(placeholder="0.00000001", id="amount-input")
                yield Button("send kas", id="send-button", variant="primary")
                yield Static(
                    "💡 make sure you have sufficient balance for the transaction + fees",
                    classes="hint",
                )
                with Container(id="tx-result"):
                    yield Static(id="tx-summary")
                    yield Button("🔗 view in explorer", id="explorer-button")

        yield Static(id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        logger.info("Network=%s, host=%s", self.config.network, self.config.host)
        self.session.store.subscribe(self.render_state)
        self.session.notifier.subscribe(self.render_status)
        self.render_state(self.session.state)
        self.render_status(None)
        self.run_worker(self.session.start(), group="session")

    def on_unmount(self) -> None:
        self.session.close()

    async def authenticate(self, provider_url: str, max_time_to_live: int) -> LoginResult:
        """Identity provider flow: open the provider and collect its payload."""
        try:
            opened = await asyncio.to_thread(webbrowser.open, provider_url)
        except webbrowser.Error as e:
            logger.warning("Could not open identity provider: %s", e)
            opened = False

        payload = await self.push_screen_wait(DelegationScreen(provider_url, opened))
        if not payload:
            return LoginFailure("UserInterrupt")
        try:
            return LoginSuccess(Identity.from_provider_payload(payload))
        except ValueError as e:
            return LoginFailure(str(e))

    def render_state(self, state: SessionState) -> None:
        self.query_one("#login-view").display = not state.authenticated
        self.query_one("#wallet-view").display = state.authenticated

        login_button = cast(Button, self.query_one("#login-button"))
        login_button.disabled = state.busy
        login_button.label = "connecting..." if state.busy else "connect with internet.id"

        balance_display = cast(Static, self.query_one("#balance-display"))
        if state.balance is not None:
            balance_display.update(
                f"{format_balance(state.balance.total)} KAS\n[dim]available balance[/dim]"
            )
        else:
            balance_display.update("")
        refresh_button = cast(Button, self.query_one("#refresh-button"))
        refresh_button.disabled = state.busy or state.address is None
        refresh_button.label = "⏳" if state.busy else "🔄"

        has_address = state.address is not None
        self.query_one("#wallet-setup").display = not has_address
        self.query_one("#wallet-tabs").display = has_address
        self.query_one("#receive-panel").display = (
            has_address and state.active_tab == WalletTab.RECEIVE
        )
        self.query_one("#send-panel").display = (
            has_address and state.active_tab == WalletTab.SEND
        )

        if state.address is not None:
            cast(Static, self.query_one("#address-display")).update(
                f"[b]your address:[/b]\n{state.address.value}"
            )
        cast(Button, self.query_one("#copy-button")).label = (
            "✅ copied!" if state.copied else "click to copy"
        )

        recipient_input = cast(Input, self.query_one("#recipient-input"))
        if recipient_input.value != state.pending.to_address:
            recipient_input.value = state.pending.to_address
        amount_input = cast(Input, self.query_one("#amount-input"))
        if amount_input.value != state.pending.amount:
            amount_input.value = state.pending.amount

        send_button = cast(Button, self.query_one("#send-button"))
        send_button.disabled = (
            state.busy or not has_address or not state.pending.is_complete
        )
        send_button.label = "sending..." if state.busy else "send kas"

        tx_result = self.query_one("#tx-result")
        tx_result.display = state.receipt is not None
        if state.receipt is not None:
            cast(Static, self.query_one("#tx-summary")).update(
                "✅ Transaction Sent!\n"
                f"Transaction ID: {format_tx_id(state.receipt.transaction_id)}\n"
                f"Fee Paid: {format_balance(state.receipt.fee_paid)} KAS"
            )

    def render_status(self, message: StatusMessage | None) -> None:
        status_line = cast(Static, self.query_one("#status-line"))
        for kind in StatusKind:
            status_line.remove_class(kind.value)
        if message is None:
            status_line.update("")
            status_line.display = False
            return
        status_line.add_class(message.kind.value)
        status_line.update(message.text)
        status_line.display = True

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "login-button":
            self.run_worker(self.session.login(), group="session")
        elif button_id == "logout-button":
            self.run_worker(self.session.logout(), group="session")
        elif button_id == "refresh-button":
            self.action_refresh_balance()
        elif button_id == "send-button":
            self.run_worker(self.session.send(), group="remote")
        elif button_id == "copy-button":
            self.action_copy_address()
        elif button_id == "explorer-button":
            self.session.open_in_explorer()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "recipient-input":
            self.session.update_pending(to_address=event.value)
        elif event.input.id == "amount-input":
            self.session.update_pending(amount=event.value)

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        if event.tab is None:
            return
        if event.tab.id == "send-tab":
            self.session.switch_tab(WalletTab.SEND)
        else:
            self.session.switch_tab(WalletTab.RECEIVE)

    def action_refresh_balance(self) -> None:
        self.run_worker(self.session.refresh_balance(), group="remote")

    def action_copy_address(self) -> None:
        self.run_worker(self.session.copy_address(), group="remote")

    def action_estimate_fee(self) -> None:
        self.run_worker(self.session.build_transaction(), group="remote")

    def action_check_service(self) -> None:
        self.run_worker(self.session.check_service(), group="remote")


def main() -> None:
    config = resolve_config()
    setup_logging(LoggingConfig.from_environment(log_dir=config.storage_dir))
    logger.info("Starting Ninja Wallet")
    WalletApp(config).run()


if __name__ == "__main__":
    main()
