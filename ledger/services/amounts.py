"""Money parsing shared by the ledger services."""

from decimal import Decimal, InvalidOperation
from typing import Any

from ledger.core.errors import ValidationError

CENT = Decimal("0.01")
# Numeric(12, 2) holds at most ten integer digits
MONEY_LIMIT = Decimal("1e10")


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Parse ``value`` into a two-decimal ``Decimal``.

    Raises ValidationError for non-numeric, non-finite, sub-cent
    or out-of-range values.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"invalid {field}")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"invalid {field}") from None
    if not parsed.is_finite() or abs(parsed) >= MONEY_LIMIT:
        raise ValidationError(f"invalid {field}")
    if parsed != parsed.quantize(CENT):
        raise ValidationError(f"invalid {field}")
    return parsed.quantize(CENT)


def to_positive_money(value: Any, field: str = "amount") -> Decimal:
    parsed = to_money(value, field)
    if parsed <= 0:
        raise ValidationError(f"invalid {field}")
    return parsed
