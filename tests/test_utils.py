from decimal import Decimal

import pytest

from utils import format_currency, from_cents, to_cents


@pytest.mark.parametrize("cents, expected", [
  (0, "$0.00"),
  (None, "$0.00"),
  ("0", "$0.00"),
  (5, "$0.05"),
  (15795, "$157.95"),
  (123456789, "$1,234,567.89"),
  (Decimal("44800"), "$448.00"),
  (-500, "-$5.00"),
])
def test_format_currency(cents, expected):
  assert format_currency(cents) == expected


@pytest.mark.parametrize("dollars, cents", [
  ("50.00", 5000),
  ("19.99", 1999),
  (0.1 + 0.2, 30),
  (Decimal("12.345"), 1235),
  (7, 700),
])
def test_to_cents(dollars, cents):
  assert to_cents(dollars) == cents


def test_cents_written_read_back_as_dollars():
  for dollars in ("0.01", "12.34", "999.99", "48900"):
    assert from_cents(to_cents(dollars)) == float(dollars)


def test_format_currency_rejects_garbage():
  with pytest.raises(ValueError):
    format_currency("n/a")
