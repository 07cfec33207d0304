"""Startup configuration for Ninja Wallet.

Configuration is resolved once, from an ordered chain of environment
variables, and never re-read during a session.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from ninja_wallet.shared.network import TimeoutConfig

logger = logging.getLogger(__name__)

PRODUCTION_NETWORK = "ic"
LOCAL_NETWORK = "local"

DEFAULT_IDENTITY_CANISTER_ID = "rdmx6-jaaaa-aaaaa-aaadq-cai"
PRODUCTION_IDENTITY_PROVIDER = "https://identity.ic0.app"
PRODUCTION_HOST = "https://ic0.app"
LOCAL_HOST = "http://127.0.0.1:4943"
LOCAL_REPLICA_PORT = 4943

EXPLORER_TX_URL_TEMPLATE = "https://explorer.kaspa.org/txs/{transaction_id}"

# 7 days, in nanoseconds.
DEFAULT_MAX_TIME_TO_LIVE = 7 * 24 * 60 * 60 * 1000 * 1000 * 1000

CANISTER_ID_VARS = (
    "CANISTER_ID_BACKEND",
    "CANISTER_ID_backend",
    "VITE_CANISTER_ID_backend",
)
IDENTITY_CANISTER_ID_VARS = (
    "CANISTER_ID_INTERNET_IDENTITY",
    "CANISTER_ID_internet_identity",
    "VITE_CANISTER_ID_internet_identity",
)
LOCAL_HOST_MARKERS = ("localhost", "127.0.0.1")


@dataclass(frozen=True)
class TransferConfig:
    # Heuristic wait before the post-send balance refresh; the service does
    # not acknowledge when its balance view catches up.
    refresh_delay: float = 2.0


@dataclass(frozen=True)
class StatusConfig:
    message_duration: float = 5.0
    copied_indicator_duration: float = 2.0


@dataclass(frozen=True)
class WalletConfig:
    canister_id: str
    network: str
    host: str
    identity_provider: str
    storage_dir: Path
    max_time_to_live: int = DEFAULT_MAX_TIME_TO_LIVE
    explorer_url_template: str = EXPLORER_TX_URL_TEMPLATE
    timeout_config: TimeoutConfig = field(default_factory=TimeoutConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    status: StatusConfig = field(default_factory=StatusConfig)

    @property
    def is_production(self) -> bool:
        return self.network == PRODUCTION_NETWORK


def first_env(environ: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def detect_network(environ: Mapping[str, str], client_host: str | None) -> str:
    """Explicit ``DFX_NETWORK`` wins; otherwise a non-local client host means production."""
    configured = environ.get("DFX_NETWORK")
    if configured:
        return configured

    if client_host and not any(marker in client_host for marker in LOCAL_HOST_MARKERS):
        return PRODUCTION_NETWORK

    return LOCAL_NETWORK


def identity_provider_url(network: str, identity_canister_id: str) -> str:
    if network == PRODUCTION_NETWORK:
        return PRODUCTION_IDENTITY_PROVIDER
    return f"http://{identity_canister_id}.localhost:{LOCAL_REPLICA_PORT}"


def service_host(network: str) -> str:
    return PRODUCTION_HOST if network == PRODUCTION_NETWORK else LOCAL_HOST


def resolve_storage_dir(environ: Mapping[str, str]) -> Path:
    env_dir = environ.get("NINJA_WALLET_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".config" / "ninja-wallet"


def resolve_config(
    environ: Mapping[str, str] | None = None,
    client_host: str | None = None,
) -> WalletConfig:
    if environ is None:
        environ = os.environ
    if client_host is None:
        client_host = environ.get("NINJA_WALLET_CLIENT_HOST")

    canister_id = first_env(environ, CANISTER_ID_VARS) or ""
    identity_canister_id = (
        first_env(environ, IDENTITY_CANISTER_ID_VARS) or DEFAULT_IDENTITY_CANISTER_ID
    )
    network = detect_network(environ, client_host)

    config = WalletConfig(
        canister_id=canister_id,
        network=network,
        host=service_host(network),
        identity_provider=identity_provider_url(network, identity_canister_id),
        storage_dir=resolve_storage_dir(environ),
    )

    logger.info("Canister ID found: %s", canister_id or "(none)")
    logger.info("Network detected: %s", network)
    if not canister_id:
        logger.warning("No wallet canister id configured; remote calls will fail")

    return config
