"""CSS styles for the Ninja Wallet application."""

CSS = """
Screen {
    background: #111318;
}

Header {
    background: #0b0d11;
    text-style: bold;
}

Footer {
    background: #0b0d11;
}

#login-view {
    align: center middle;
    height: 1fr;
}

#login-title, #wallet-title {
    text-style: bold;
    color: #49eacb;
    width: 100%;
    content-align: center middle;
}

#login-subtitle, .hint {
    color: #9ca3af;
    width: 100%;
    content-align: center middle;
    margin: 1 0;
}

#login-button {
    width: 100%;
}

#wallet-view {
    padding: 1 2;
    height: 1fr;
}

#balance-row {
    height: auto;
    margin-bottom: 1;
}

#balance-display {
    width: 1fr;
    text-style: bold;
}

#wallet-setup {
    color: #a0a0a0;
    content-align: center middle;
    padding: 1;
}

#address-display {
    border: round #49eacb;
    padding: 1;
}

#send-panel Input {
    margin-bottom: 1;
}

#tx-result {
    border: round #22c55e;
    padding: 1;
    margin-top: 1;
    height: auto;
}

#status-line {
    dock: bottom;
    height: auto;
    padding: 0 2;
}

#status-line.info {
    color: #93c5fd;
}

#status-line.success {
    color: #4ade80;
}

#status-line.error {
    color: #ef4444;
}

DelegationScreen {
    align: center middle;
}

#delegation-dialog {
    width: 80;
    height: auto;
    border: thick #49eacb;
    background: #1e1e2e;
    padding: 1 2;
}
"""
