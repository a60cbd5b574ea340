"""
Amount Handling Module

Converts caller-supplied amounts to Decimal. Floats are converted through
their string form so 2500.50 becomes Decimal('2500.5') rather than the
binary expansion.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

AmountLike = Union[Decimal, int, float, str]

ZERO = Decimal('0')


def to_amount(value: AmountLike) -> Optional[Decimal]:
    """
    Convert a value to a finite Decimal.
    
    Returns None for anything that is not a finite number, including bools
    and None itself.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite():
        return None
    return amount

