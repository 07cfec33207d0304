"""Wallet feature module for Ninja Wallet."""

from ninja_wallet.features.wallet.service import WalletController

__all__ = ["WalletController"]
