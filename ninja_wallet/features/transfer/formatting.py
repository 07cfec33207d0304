"""Amount conversion and display helpers. Pure functions, no remote calls."""

from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from ninja_wallet.config import EXPLORER_TX_URL_TEMPLATE

SOMPI_PER_KAS = 100_000_000
KAS_DECIMALS = 8
TX_ID_DISPLAY_LIMIT = 16
TX_ID_EDGE = 8


def kas_to_sompi(amount: str) -> int:
    """Convert a KAS decimal string to sompi, truncating below one sompi.

    Decimal arithmetic keeps inputs with up to 8 fractional digits exact.
    Raises ``ValueError`` for text that is not a finite number.
    """
    try:
        value = Decimal(amount.strip())
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Not a finite number: {amount!r}")
    return int((value * SOMPI_PER_KAS).to_integral_value(rounding=ROUND_FLOOR))


def format_balance(sompi: int, decimals: int = KAS_DECIMALS) -> str:
    kas = Decimal(int(sompi)) / SOMPI_PER_KAS
    return f"{kas:.{decimals}f}"


def format_tx_id(transaction_id: str) -> str:
    if len(transaction_id) <= TX_ID_DISPLAY_LIMIT:
        return transaction_id
    return f"{transaction_id[:TX_ID_EDGE]}...{transaction_id[-TX_ID_EDGE:]}"


def explorer_url(transaction_id: str, template: str = EXPLORER_TX_URL_TEMPLATE) -> str:
    return template.format(transaction_id=transaction_id)
