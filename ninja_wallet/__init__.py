"""Ninja Wallet - a terminal-first TUI for a custodial Kaspa wallet canister.

This package is organized into feature-based modules:
- features.wallet: Address bootstrap and balance refresh
- features.transfer: Amount validation, formatting and transaction workflow
- shared: Shared utilities (logging, network, status line, clipboard, errors)
"""

from ninja_wallet.config import WalletConfig, resolve_config
from ninja_wallet.controller import WalletSession
from ninja_wallet.identity import AuthClient, IdentityManager, LoginFailure, LoginSuccess
from ninja_wallet.ledger import HttpAgent, LedgerHandle, RemoteHandle
from ninja_wallet.session import SessionFactory
from ninja_wallet.state import SessionPhase, SessionState, SessionStore

__version__ = "0.1.0"
__all__ = [
    "WalletConfig",
    "resolve_config",
    "WalletSession",
    "AuthClient",
    "IdentityManager",
    "LoginFailure",
    "LoginSuccess",
    "HttpAgent",
    "LedgerHandle",
    "RemoteHandle",
    "SessionFactory",
    "SessionPhase",
    "SessionState",
    "SessionStore",
]
