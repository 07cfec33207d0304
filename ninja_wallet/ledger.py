"""Authorized access to the wallet canister.

``HttpAgent`` speaks JSON over HTTP to the replica gateway on behalf of one
identity. ``LedgerHandle`` exposes the canister's methods as coroutines
returning typed results; blocking I/O runs in a worker thread so the event
loop stays responsive.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any, Callable, Protocol, TypeVar

from ninja_wallet.models import (
    U64_MAX,
    Address,
    Balance,
    BuildResult,
    Identity,
    TransactionReceipt,
)
from ninja_wallet.shared.errors import AuthError, RemoteError
from ninja_wallet.shared.logging import get_logger
from ninja_wallet.shared.network import (
    NetworkClient,
    NetworkError,
    NetworkErrorType,
    TimeoutConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteHandle(Protocol):
    """Operations offered by the wallet canister."""

    async def generate_address(self) -> Address: ...
    async def get_balance(self, address: str) -> Balance: ...
    async def send_transaction(
        self, from_address: str, to_address: str, amount: int
    ) -> TransactionReceipt: ...
    async def build_transaction(
        self, from_address: str, to_address: str, amount: int
    ) -> BuildResult: ...
    async def broadcast_transaction(self, serialized_tx: str) -> str: ...
    async def whoami(self) -> str: ...
    async def health(self) -> str: ...


class HttpAgent:
    STATUS_ENDPOINT = "/api/v2/status"

    def __init__(
        self,
        host: str,
        identity: Identity,
        timeout_config: TimeoutConfig | None = None,
        require_root_key: bool = False,
    ):
        self.host = host.rstrip("/")
        self.identity = identity
        self.require_root_key = require_root_key
        self.root_key: bytes | None = None
        self._client = NetworkClient(
            base_url=self.host,
            timeout_config=timeout_config,
            default_headers={
                "Authorization": f"Delegation {identity.delegation}",
                "X-Principal": identity.principal,
            },
        )

    def fetch_root_key(self) -> bytes:
        """Fetch and pin the replica's root key. Needed on non-production networks."""
        data = self._client.get(self.STATUS_ENDPOINT, context="Root key fetch")
        raw = data.get("root_key") if isinstance(data, dict) else None
        if not raw:
            raise NetworkError(
                error_type=NetworkErrorType.INVALID_RESPONSE,
                message=f"Replica at {self.host} did not return a root key",
            )
        try:
            root_key = bytes.fromhex(raw)
        except (TypeError, ValueError) as e:
            raise NetworkError(
                error_type=NetworkErrorType.INVALID_RESPONSE,
                message=f"Replica at {self.host} returned a malformed root key",
                original_error=e,
            ) from e

        self.root_key = root_key
        self._client.default_headers["X-Root-Key"] = hashlib.sha256(
            root_key
        ).hexdigest()
        logger.info("Root key fetched from %s", self.host)
        return root_key

    def _check_trust(self) -> None:
        if self.require_root_key and self.root_key is None:
            raise AuthError(
                f"Root key for {self.host} has not been fetched; the replica "
                "will reject unauthenticated calls"
            )

    def call(self, canister_id: str, method: str, args: list[Any]) -> Any:
        self._check_trust()
        return self._client.post(
            f"/api/v2/canister/{canister_id}/call/{method}",
            {"args": args},
            context=method,
        )

    def query(self, canister_id: str, method: str, args: list[Any]) -> Any:
        self._check_trust()
        return self._client.post(
            f"/api/v2/canister/{canister_id}/query/{method}",
            {"args": args},
            context=method,
        )


def _check_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError("Amount must be an integer number of sompi")
    if amount < 0 or amount > U64_MAX:
        raise ValueError(f"Amount is outside the u64 range: {amount}")
    return amount


def _unwrap(method: str, response: Any) -> Any:
    if isinstance(response, dict):
        if "ok" in response:
            return response["ok"]
        if "err" in response:
            raise RemoteError(method, str(response["err"]))
    raise NetworkError(
        error_type=NetworkErrorType.INVALID_RESPONSE,
        message=f"Unexpected {method} response",
    )


def _decode(method: str, decoder: Callable[[Any], T], payload: Any) -> T:
    try:
        return decoder(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise NetworkError(
            error_type=NetworkErrorType.INVALID_RESPONSE,
            message=f"Malformed {method} response: {e}",
            original_error=e,
        ) from e


class LedgerHandle:
    """Remote handle bound to one agent (identity + endpoint) and one canister."""

    def __init__(self, agent: HttpAgent, canister_id: str):
        self.agent = agent
        self.canister_id = canister_id
        self._log = get_logger(
            __name__,
            {"canister_id": canister_id, "principal": agent.identity.principal},
        )

    async def _update(self, method: str, *args: Any) -> Any:
        self._log.debug("Calling %s", method)
        response = await asyncio.to_thread(
            self.agent.call, self.canister_id, method, list(args)
        )
        return _unwrap(method, response)

    async def _query(self, method: str) -> Any:
        self._log.debug("Querying %s", method)
        response = await asyncio.to_thread(
            self.agent.query, self.canister_id, method, []
        )
        if isinstance(response, dict) and "ok" in response:
            return response["ok"]
        return response

    async def generate_address(self) -> Address:
        payload = await self._update("generateAddress")
        return _decode("generateAddress", Address.from_payload, payload)

    async def get_balance(self, address: str) -> Balance:
        payload = await self._update("getBalance", address)
        return _decode("getBalance", Balance.from_payload, payload)

    async def send_transaction(
        self, from_address: str, to_address: str, amount: int
    ) -> TransactionReceipt:
        payload = await self._update(
            "sendTransaction", from_address, to_address, _check_amount(amount)
        )
        return _decode("sendTransaction", TransactionReceipt.from_payload, payload)

    async def build_transaction(
        self, from_address: str, to_address: str, amount: int
    ) -> BuildResult:
        payload = await self._update(
            "buildTransaction", from_address, to_address, _check_amount(amount)
        )
        return _decode("buildTransaction", BuildResult.from_payload, payload)

    async def broadcast_transaction(self, serialized_tx: str) -> str:
        payload = await self._update("broadcastTransaction", serialized_tx)
        return str(payload)

    async def whoami(self) -> str:
        return str(await self._query("whoami"))

    async def health(self) -> str:
        return str(await self._query("health"))
