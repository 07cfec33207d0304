"""Data types shared by the wallet services and the TUI."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

U64_MAX = 2**64 - 1


class StatusKind(Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    id: int
    text: str
    kind: StatusKind
    expires_at: float


@dataclass(frozen=True)
class Identity:
    """Delegated credential issued by the identity provider."""

    principal: str
    delegation: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "principal": self.principal,
            "delegation": self.delegation,
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identity":
        expires_at = datetime.fromisoformat(data["expires_at"])
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return cls(
            principal=data["principal"],
            delegation=data["delegation"],
            expires_at=expires_at,
        )

    @classmethod
    def from_provider_payload(cls, payload: str) -> "Identity":
        """Parse the JSON handed back by the identity provider.

        The payload carries ``principal``, ``delegation`` and ``expiration``
        (nanoseconds since the epoch). Raises ``ValueError`` when malformed.
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError("Identity payload is not valid JSON") from e
        if not isinstance(data, dict):
            raise ValueError("Identity payload must be a JSON object")

        principal = str(data.get("principal") or "").strip()
        delegation = str(data.get("delegation") or "").strip()
        expiration = data.get("expiration")
        if not principal or not delegation or expiration is None:
            raise ValueError(
                "Identity payload requires principal, delegation and expiration"
            )
        try:
            expires_at = datetime.fromtimestamp(
                int(expiration) / 1_000_000_000, tz=timezone.utc
            )
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise ValueError("Identity expiration is not a valid timestamp") from e
        return cls(principal=principal, delegation=delegation, expires_at=expires_at)


@dataclass(frozen=True)
class Address:
    value: str
    derivation_path: str
    public_key: bytes
    script_public_key: str
    addr_type: int = 0

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Address":
        return cls(
            value=data["address"],
            derivation_path=data.get("derivation_path", ""),
            public_key=bytes(data.get("public_key", [])),
            script_public_key=data.get("script_public_key", ""),
            addr_type=int(data.get("addr_type", 0)),
        )


def _u64(value: Any, field_name: str) -> int:
    number = int(value)
    if number < 0 or number > U64_MAX:
        raise ValueError(f"{field_name} is outside the u64 range: {number}")
    return number


@dataclass(frozen=True)
class Balance:
    """Account balance in sompi."""

    confirmed: int
    unconfirmed: int
    immature: int
    total: int

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Balance":
        return cls(
            confirmed=_u64(data["confirmed"], "confirmed"),
            unconfirmed=_u64(data["unconfirmed"], "unconfirmed"),
            immature=_u64(data["immature"], "immature"),
            total=_u64(data["total"], "total"),
        )


@dataclass(frozen=True)
class PendingTransfer:
    to_address: str = ""
    amount: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.to_address.strip()) and bool(self.amount.strip())


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_id: str
    fee_paid: int

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "TransactionReceipt":
        return cls(
            transaction_id=data["transaction_id"],
            fee_paid=_u64(data["fee_paid"], "fee_paid"),
        )


@dataclass(frozen=True)
class BuildResult:
    serialized_tx: str
    fee_paid: int

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "BuildResult":
        return cls(
            serialized_tx=data["serialized_tx"],
            fee_paid=_u64(data["fee_paid"], "fee_paid"),
        )
