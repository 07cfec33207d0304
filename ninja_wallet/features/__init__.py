"""Feature modules for Ninja Wallet.

- wallet: Address generation and balance refresh
- transfer: Amount conversion, validation and the send/build/broadcast workflow
"""

from ninja_wallet.features import transfer
from ninja_wallet.features import wallet

__all__ = ["transfer", "wallet"]
