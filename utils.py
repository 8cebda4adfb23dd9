# utils.py
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[int, float, str, Decimal, None]

CENTS = Decimal(100)


def _as_decimal(value: Number) -> Decimal:
  if value is None:
    return Decimal(0)
  if isinstance(value, str):
    value = value.strip() or "0"
  try:
    return Decimal(str(value))
  except InvalidOperation:
    raise ValueError(f"not a number: {value!r}") from None


def format_currency(amount: Number) -> str:
  """Render an amount stored in cents as US dollars, e.g. 123456 -> "$1,234.56"."""
  dollars = (_as_decimal(amount) / CENTS).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
  sign = "-" if dollars < 0 else ""
  return f"{sign}${abs(dollars):,.2f}"


def to_cents(dollars: Number) -> int:
  return int((_as_decimal(dollars) * CENTS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_cents(cents: Number) -> float:
  return float(_as_decimal(cents) / CENTS)
