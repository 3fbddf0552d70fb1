from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, NamedTuple, Union

Number = Union[Decimal, float, int, str]


def _to_decimal(value: Number) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value


def round_cents(value: Number) -> int:
    """
    Round an amount expressed in cents to a whole cent (ROUND_HALF_UP).

    Examples:
        >>> round_cents("499.5")
        500
        >>> round_cents("-749.5")
        -750
    """
    return int(_to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class LineTotals(NamedTuple):
    subtotal_cents: int
    tax_cents: int
    total_cents: int


def calc_line_totals(quantity: Number, unit_price_cents: int, tax_rate: Number) -> LineTotals:
    """
    subtotal = quantity * unit price, tax = subtotal * rate / 100.

    Negative rates (withholding, e.g. IRPF -15) reduce the total.
    """
    subtotal = round_cents(_to_decimal(quantity) * unit_price_cents)
    tax = round_cents(Decimal(subtotal) * _to_decimal(tax_rate) / 100)
    return LineTotals(subtotal, tax, subtotal + tax)


def calc_document_totals(lines: Iterable[LineTotals]) -> LineTotals:
    subtotal = tax = 0
    for line in lines:
        subtotal += line.subtotal_cents
        tax += line.tax_cents
    return LineTotals(subtotal, tax, subtotal + tax)
