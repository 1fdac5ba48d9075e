"""
Bill totals: subtotal, discount, tax and grand total for a set of lines.

Pure functions over Decimal; nothing here touches the database.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

from ..core.exceptions import ValidationError

Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")
CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Number, field: str = "value") -> Decimal:
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except (ArithmeticError, TypeError, ValueError):
            raise ValidationError(f"{field} must be a number", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return result


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    quantity: int
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal

    def rounded(self) -> "BillTotals":
        """
        Currency-rounded figures. The total is rebuilt from the rounded parts
        so total == subtotal - discount + tax holds exactly for stored values.
        """
        subtotal = quantize_money(self.subtotal)
        discount_amount = quantize_money(self.discount_amount)
        tax_amount = quantize_money(self.tax_amount)
        return BillTotals(
            subtotal=subtotal,
            discount_amount=discount_amount,
            tax_amount=tax_amount,
            total=subtotal - discount_amount + tax_amount,
        )


def validate_percentage(value: Number, field: str) -> Decimal:
    pct = to_decimal(value, field)
    if pct < ZERO or pct > HUNDRED:
        raise ValidationError(f"{field} must be between 0 and 100, got {pct}", field=field)
    return pct


def compute_totals(line_items: Iterable, discount_pct: Number, tax_pct: Number) -> BillTotals:
    """
    subtotal = sum(quantity * unit_price)
    discount_amount = subtotal * discount_pct / 100
    tax_amount = (subtotal - discount_amount) * tax_pct / 100
    total = subtotal - discount_amount + tax_amount

    `line_items` may hold anything with `quantity` and `unit_price`.
    """
    discount = validate_percentage(discount_pct, "discount_pct")
    tax = validate_percentage(tax_pct, "tax_pct")

    subtotal = ZERO
    for index, item in enumerate(line_items):
        quantity = item.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                f"Line {index + 1}: quantity must be a positive integer", field="quantity"
            )
        unit_price = to_decimal(item.unit_price, "unit_price")
        if unit_price < ZERO:
            raise ValidationError(f"Line {index + 1}: unit price cannot be negative", field="unit_price")
        subtotal += quantity * unit_price

    discount_amount = subtotal * discount / HUNDRED
    taxable = subtotal - discount_amount
    tax_amount = taxable * tax / HUNDRED

    return BillTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        total=taxable + tax_amount,
    )
