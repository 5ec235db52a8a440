"""
Offer row validation.

Turns the cell values of one spreadsheet row into a candidate offer.
Columns are positional: offer id, name, price, quantity, available.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence

from services.exceptions import RowRejectedError

AVAILABLE_TOKENS = {'true': True, 'false': False}

# Column limits of the offers table
INTEGER_MIN = -2 ** 31
INTEGER_MAX = 2 ** 31 - 1
MAX_NAME_LENGTH = 512

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')


@dataclass(frozen=True)
class CandidateOffer:
    """A validated row, not yet applied to the catalog."""
    offer_id: int
    offer_name: str
    price: int
    quantity: int
    available: bool
    seller_id: Optional[int] = None

    def for_seller(self, seller_id: int) -> 'CandidateOffer':
        return replace(self, seller_id=seller_id)


def _cell(values: Sequence[Any], index: int) -> Any:
    return values[index] if index < len(values) else None


def parse_integer(value: Any) -> int:
    """
    Read an integer cell.

    Accepts ints, floats without a fractional part and plain digit
    strings that fit a 32-bit signed column. Booleans and anything else
    raise ValueError.
    """
    if isinstance(value, bool):
        raise ValueError(f"boolean is not an integer: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"not a whole number: {value!r}")
        number = int(value)
    elif isinstance(value, str) and _INTEGER_PATTERN.match(value):
        number = int(value)
    else:
        raise ValueError(f"not an integer: {value!r}")

    if not INTEGER_MIN <= number <= INTEGER_MAX:
        raise ValueError(f"integer out of range: {value!r}")
    return number


def parse_available(value: Any) -> bool:
    """Read the availability cell, the text 'true' or 'false' only."""
    if isinstance(value, str) and value in AVAILABLE_TOKENS:
        return AVAILABLE_TOKENS[value]
    raise ValueError(f"availability must be 'true' or 'false': {value!r}")


def offer_from_row(values: Sequence[Any]) -> CandidateOffer:
    """
    Validate one row of cell values.

    Args:
        values: Cell values in column order; missing trailing cells are
            treated as empty.

    Returns:
        CandidateOffer without a seller attached

    Raises:
        RowRejectedError: If any cell is invalid. The message is only for
            logging; callers treat every rejection the same way.
    """
    try:
        offer_id = parse_integer(_cell(values, 0))

        name = _cell(values, 1)
        if name is None or str(name) == '':
            raise ValueError("offer name is empty")
        if len(str(name)) > MAX_NAME_LENGTH:
            raise ValueError(f"offer name longer than {MAX_NAME_LENGTH} characters")

        price = parse_integer(_cell(values, 2))
        if price < 0:
            raise ValueError(f"negative price: {price}")

        quantity = parse_integer(_cell(values, 3))
        if quantity <= 0:
            raise ValueError(f"quantity must be positive: {quantity}")

        available = parse_available(_cell(values, 4))
    except ValueError as e:
        raise RowRejectedError(str(e)) from e

    return CandidateOffer(
        offer_id=offer_id,
        offer_name=str(name),
        price=price,
        quantity=quantity,
        available=available
    )
