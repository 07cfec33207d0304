"""Checks on the send form's amount field, run before any remote call."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ninja_wallet.features.transfer.formatting import KAS_DECIMALS, kas_to_sompi
from ninja_wallet.models import U64_MAX


class AmountRejected(ValueError):
    pass


@dataclass(frozen=True)
class AmountCheck:
    """Outcome of checking one amount string.

    ``sompi`` is set only when ``ok`` is true.
    """

    ok: bool
    error: str | None = None
    sompi: int | None = None

    @classmethod
    def reject(cls, error: str) -> "AmountCheck":
        return cls(ok=False, error=error)


class KasAmountValidator:
    """Turns a KAS amount typed by the user into sompi.

    The typed text must be a plain positive decimal with at most
    ``KAS_DECIMALS`` fractional digits, so the floor in ``kas_to_sompi``
    never drops anything.
    """

    def __init__(self, max_decimals: int = KAS_DECIMALS, max_sompi: int = U64_MAX):
        self.max_decimals = max_decimals
        self.max_sompi = max_sompi

    def to_decimal(self, text: str) -> Decimal:
        cleaned = (text or "").strip().replace(",", "")
        if not cleaned:
            raise AmountRejected("Amount is required")
        if cleaned[0] in "+-":
            raise AmountRejected("Amount must be a positive number")

        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            raise AmountRejected("Amount must be a valid number") from None

        if not value.is_finite():
            raise AmountRejected("Amount must be a finite number")
        if value == 0:
            raise AmountRejected("Amount must be greater than zero")
        return value

    def check_precision(self, value: Decimal) -> None:
        exponent = value.as_tuple().exponent
        places = -exponent if isinstance(exponent, int) and exponent < 0 else 0
        if places > self.max_decimals:
            raise AmountRejected(
                f"Too many decimal places. Maximum {self.max_decimals} allowed for KAS"
            )

    def to_sompi(self, value: Decimal) -> int:
        sompi = kas_to_sompi(str(value))
        if sompi > self.max_sompi:
            raise AmountRejected("Amount exceeds maximum allowed value")
        return sompi

    def check(self, text: str) -> AmountCheck:
        try:
            value = self.to_decimal(text)
            self.check_precision(value)
            sompi = self.to_sompi(value)
        except AmountRejected as e:
            return AmountCheck.reject(str(e))
        return AmountCheck(ok=True, sompi=sompi)


DEFAULT_AMOUNT_VALIDATOR = KasAmountValidator()


def check_amount(text: str) -> AmountCheck:
    return DEFAULT_AMOUNT_VALIDATOR.check(text)
