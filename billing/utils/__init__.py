from billing.utils.money import (
    CENT,
    MAX_AMOUNT,
    ZERO,
    format_money,
    positive_amount,
    to_money,
)

__all__ = [
    "CENT",
    "MAX_AMOUNT",
    "ZERO",
    "format_money",
    "positive_amount",
    "to_money",
]
