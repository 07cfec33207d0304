"""Error taxonomy for Ninja Wallet.

Every error is surfaced to the user as a transient status message; none of
them terminate the client.
"""

from ninja_wallet.shared.logging import format_error_for_user
from ninja_wallet.shared.network import NetworkError, NetworkErrorType


class WalletError(Exception):
    """Base class for errors reported through the status line."""


class InitError(WalletError):
    """Restoring the persisted identity failed."""


class AuthError(WalletError):
    """Login or logout failed."""


class TrustBootstrapError(WalletError):
    """Fetching the root key of a non-production endpoint failed."""


class WalletSetupError(WalletError):
    """Address generation or the first balance fetch failed."""


class BalanceRefreshError(WalletError):
    pass


class ValidationError(WalletError):
    """Transfer input is missing or malformed. Raised before any remote call."""


class TransactionError(WalletError):
    """The remote send, build or broadcast operation failed."""


class ClipboardError(WalletError):
    pass


class RemoteError(WalletError):
    """The wallet canister answered with an ``err`` variant."""

    def __init__(self, method: str, message: str):
        super().__init__(message)
        self.method = method
        self.message = message

    def __str__(self) -> str:
        return self.message


def describe_error(error: Exception) -> str:
    """Text shown in the status line for a failed operation."""
    if isinstance(error, NetworkError) and error.error_type in (
        NetworkErrorType.TIMEOUT,
        NetworkErrorType.CONNECTION_ERROR,
    ):
        return format_error_for_user(error)
    return str(error)
