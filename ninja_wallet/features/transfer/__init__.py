"""Transfer feature module for Ninja Wallet."""

from ninja_wallet.features.transfer.formatting import (
    explorer_url,
    format_balance,
    format_tx_id,
    kas_to_sompi,
)
from ninja_wallet.features.transfer.service import TransactionWorkflow
from ninja_wallet.features.transfer.validators import (
    AmountCheck,
    KasAmountValidator,
    check_amount,
)

__all__ = [
    "AmountCheck",
    "KasAmountValidator",
    "TransactionWorkflow",
    "check_amount",
    "explorer_url",
    "format_balance",
    "format_tx_id",
    "kas_to_sompi",
]
