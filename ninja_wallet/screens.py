"""Modal screens for the Ninja Wallet application."""

import logging
from typing import cast

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

logger = logging.getLogger(__name__)


class DelegationScreen(ModalScreen[str | None]):
    """Collects the identity payload issued by the identity provider.

    Dismisses with the pasted payload, or ``None`` when the user cancels.
    """

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("tab", "focus_next", "Next"),
        ("shift+tab", "focus_previous", "Previous"),
    ]

    def __init__(self, provider_url: str, browser_opened: bool):
        super().__init__()
        self.provider_url = provider_url
        self.browser_opened = browser_opened

    def compose(self) -> ComposeResult:
        if self.browser_opened:
            instructions = (
                f"Your browser opened {self.provider_url}.\n"
                "Approve the connection there, then paste the identity payload below."
            )
        else:
            instructions = (
                f"Open {self.provider_url} in your browser, approve the connection,\n"
                "then paste the identity payload below."
            )

        with Vertical(id="delegation-dialog"):
            yield Label("🔐 Connect with Internet Identity", id="delegation-title")
            yield Static(instructions, id="delegation-instructions")
            yield Input(
                placeholder='{"principal": "...", "delegation": "...", "expiration": ...}',
                id="delegation-input",
            )
            yield Horizontal(
                Button("Connect", id="delegation-confirm", variant="primary"),
                Button("Cancel", id="delegation-cancel"),
            )

    def on_mount(self) -> None:
        self.query_one("#delegation-input").focus()

    def _confirm(self) -> None:
        payload = cast(Input, self.query_one("#delegation-input")).value.strip()
        if not payload:
            self.notify("Paste the identity payload first", severity="warning")
            return
        self.dismiss(payload)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "delegation-confirm":
            self._confirm()
        elif event.button.id == "delegation-cancel":
            logger.info("Identity provider flow cancelled by user")
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._confirm()

    def action_cancel(self) -> None:
        self.dismiss(None)
