"""Shared utilities for Ninja Wallet."""

from ninja_wallet.shared.clipboard import CopyResult, copy_text
from ninja_wallet.shared.errors import (
    AuthError,
    BalanceRefreshError,
    ClipboardError,
    InitError,
    RemoteError,
    TransactionError,
    TrustBootstrapError,
    ValidationError,
    WalletError,
    WalletSetupError,
    describe_error,
)
from ninja_wallet.shared.logging import (
    ContextAdapter,
    LoggingConfig,
    format_error_for_user,
    get_logger,
    get_user_friendly_error,
    sanitize_dict,
    sanitize_message,
    setup_logging,
)
from ninja_wallet.shared.network import (
    NetworkClient,
    NetworkError,
    NetworkErrorType,
    TimeoutConfig,
)
from ninja_wallet.shared.status import StatusNotifier

__all__ = [
    "CopyResult",
    "copy_text",
    "AuthError",
    "BalanceRefreshError",
    "ClipboardError",
    "InitError",
    "RemoteError",
    "TransactionError",
    "TrustBootstrapError",
    "ValidationError",
    "WalletError",
    "WalletSetupError",
    "describe_error",
    "NetworkClient",
    "NetworkError",
    "NetworkErrorType",
    "TimeoutConfig",
    "ContextAdapter",
    "LoggingConfig",
    "format_error_for_user",
    "get_logger",
    "get_user_friendly_error",
    "sanitize_dict",
    "sanitize_message",
    "setup_logging",
    "StatusNotifier",
]
