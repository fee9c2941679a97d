"""
Line-Item Totals Service
Document totals shared by quotations, sales orders, purchase orders and invoices
"""
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence, Type

from sqlalchemy.orm import Session

from qms.core.exceptions import NotFoundError, ValidationError
from qms.models.product import Product

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class LineTotals:
    gross: Decimal
    discount: Decimal
    tax: Decimal

    @property
    def line_total(self) -> Decimal:
        """Taxable amount plus tax"""
        return self.gross - self.discount + self.tax


@dataclass
class DocumentTotals:
    subtotal: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    lines: List[LineTotals] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal - self.discount_amount + self.tax_amount

    def as_dict(self) -> dict:
        return {
            "subtotal": to_money(self.subtotal),
            "discount_amount": to_money(self.discount_amount),
            "tax_amount": to_money(self.tax_amount),
            "total_amount": to_money(self.total_amount),
        }


def calculate_line(quantity, unit_price, discount_percent=0, tax_percent=0) -> LineTotals:
    """
    line_total = quantity * unit_price
    discount   = line_total * discount_percent / 100
    taxable    = line_total - discount
    tax        = taxable * tax_percent / 100
    """
    gross = to_decimal(quantity) * to_decimal(unit_price)
    discount = gross * to_decimal(discount_percent) / HUNDRED
    taxable = gross - discount
    tax = taxable * to_decimal(tax_percent) / HUNDRED
    return LineTotals(gross=gross, discount=discount, tax=tax)


def _field(item, key: str):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def calculate_totals(items: Iterable) -> DocumentTotals:
    """
    Compute header totals for a list of items.

    Items may be objects or dicts exposing quantity, unit_price and the
    optional discount_percent / tax_percent.
    """
    totals = DocumentTotals()
    for item in items:
        line = calculate_line(
            _field(item, "quantity"),
            _field(item, "unit_price"),
            _field(item, "discount_percent") or 0,
            _field(item, "tax_percent") or 0,
        )
        totals.lines.append(line)
        totals.subtotal += line.gross
        totals.discount_amount += line.discount
        totals.tax_amount += line.tax
    return totals


def apply_totals(document, totals: DocumentTotals) -> None:
    for key, value in totals.as_dict().items():
        setattr(document, key, value)


def build_line_items(db: Session, item_cls: Type, items_in: Sequence) -> tuple:
    """
    Create item model instances from line item inputs.

    A missing description is taken from the referenced product.

    Returns:
        (items, DocumentTotals)
    """
    totals = calculate_totals(items_in)
    items = []
    for item_in, line in zip(items_in, totals.lines):
        description = item_in.description
        if item_in.product_id is not None:
            product = db.get(Product, item_in.product_id)
            if product is None:
                raise NotFoundError("Product", item_in.product_id)
            description = description or product.name
        if not description:
            raise ValidationError("Each item needs a description or a product")

        items.append(item_cls(
            product_id=item_in.product_id,
            description=description,
            quantity=to_decimal(item_in.quantity),
            unit_price=to_decimal(item_in.unit_price),
            discount_percent=to_decimal(item_in.discount_percent),
            tax_percent=to_decimal(item_in.tax_percent),
            line_total=to_money(line.line_total),
        ))
    return items, totals


def copy_line_items(source_items: Iterable, item_cls: Type, quantity_attr: Optional[str] = None) -> list:
    """
    Snapshot copies of existing items into another document's item class.

    quantity_attr selects an alternative quantity column (e.g. received_quantity).
    """
    copies = []
    for item in source_items:
        if quantity_attr:
            quantity = getattr(item, quantity_attr)
            line_total = to_money(calculate_line(
                quantity, item.unit_price, item.discount_percent, item.tax_percent
            ).line_total)
        else:
            quantity, line_total = item.quantity, item.line_total
        copies.append(item_cls(
            product_id=item.product_id,
            description=item.description,
            quantity=to_decimal(quantity),
            unit_price=to_decimal(item.unit_price),
            discount_percent=to_decimal(item.discount_percent),
            tax_percent=to_decimal(item.tax_percent),
            line_total=line_total,
        ))
    return copies
