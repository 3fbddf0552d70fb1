"""Line building and totals shared by numbered documents."""

from typing import Any, Iterable

from src.core.documents.schemas import DocumentLineCreate
from src.shared.utils.money import LineTotals, calc_document_totals, calc_line_totals


def build_lines(line_cls: type, lines_data: Iterable[DocumentLineCreate]) -> list[Any]:
    """Create line model instances with computed totals, positioned in input order."""
    lines = []
    for position, data in enumerate(lines_data, start=1):
        totals = calc_line_totals(data.quantity, data.unit_price_cents, data.tax_rate)
        lines.append(
            line_cls(
                position=position,
                description=data.description,
                quantity=data.quantity,
                unit_price_cents=data.unit_price_cents,
                tax_rate=data.tax_rate,
                line_subtotal_cents=totals.subtotal_cents,
                line_tax_cents=totals.tax_cents,
                line_total_cents=totals.total_cents,
            )
        )
    return lines


def recalculate_totals(document: Any) -> None:
    """Recalculate document subtotal/tax/total from its lines."""
    totals = calc_document_totals(
        LineTotals(line.line_subtotal_cents, line.line_tax_cents, line.line_total_cents)
        for line in document.lines
    )
    document.subtotal_cents = totals.subtotal_cents
    document.tax_cents = totals.tax_cents
    document.total_cents = totals.total_cents
