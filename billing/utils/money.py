from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing.exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest magnitude a DecimalField(max_digits=12, decimal_places=2) holds.
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value) -> Decimal:
    """
    Convert user input (decimal string, int, float or Decimal) to cents.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.10")`` rather
    than its binary expansion. Booleans, NaN, infinities and values too large
    for a money column are rejected.

    Raises:
        InvalidAmount: If the value is not a finite number within MAX_AMOUNT.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmount("Amount is required and must be numeric.")

    if isinstance(value, float):
        value = str(value)

    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
        if not amount.is_finite():
            raise InvalidAmount(f"Invalid amount: {value!r}.")
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {value!r}.")

    if abs(amount) > MAX_AMOUNT:
        raise InvalidAmount(f"Amount cannot exceed {MAX_AMOUNT}.")
    return amount


def positive_amount(value, error_class=InvalidAmount) -> Decimal:
    """Parse ``value`` and require it to be strictly positive after rounding."""
    try:
        amount = to_money(value)
    except InvalidAmount as exc:
        raise error_class(exc.message)

    if amount <= ZERO:
        raise error_class("Amount must be a positive number.")
    return amount


def format_money(amount) -> str:
    return f"{to_money(amount):.2f}"
