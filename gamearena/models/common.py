from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Union

from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Quantizes an amount to cents (half-up), the only precision the ledger stores."""
    if isinstance(value, float):
        value = str(value)  # Decimal(0.1) would carry the binary expansion
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Money = Annotated[Decimal, AfterValidator(to_money)]


class CamelModel(BaseModel):
    """Base for everything that crosses the wire: camelCase out, either case in."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True
        from_attributes = True
