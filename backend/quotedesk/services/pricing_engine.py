"""
Quotation pricing engine

Turns a line total, a discount and the two GST percents into the full
pricing breakdown stored on quotations and copied onto bills. Pure: no I/O,
Decimal arithmetic only, every stored amount rounded half-up to paise.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional, Union

from quotedesk.core.config import settings
from quotedesk.core.middleware import DiscountError, ValidationException

CENT = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value, default: Decimal = ZERO) -> Decimal:
    """Coerce numbers and numeric strings; None and blanks become ``default``"""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps floats like 0.1 from dragging binary noise along
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationException(f"Not a number: {value!r}")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ===== Discount variants =====

@dataclass(frozen=True)
class NoDiscount:
    kind = "none"
    value: Decimal = ZERO


@dataclass(frozen=True)
class PercentageDiscount:
    value: Decimal
    kind = "percentage"


@dataclass(frozen=True)
class FlatDiscount:
    value: Decimal
    kind = "flat"


DiscountSpec = Union[NoDiscount, PercentageDiscount, FlatDiscount]


def discount_from_fields(discount_type: Optional[str], discount_value) -> DiscountSpec:
    """Resolve the stored (type, value) pair into a discount variant"""
    value = to_decimal(discount_value)
    if not discount_type or discount_type == "none" or value <= 0:
        return NoDiscount()
    if discount_type == "percentage":
        return PercentageDiscount(value)
    if discount_type == "flat":
        return FlatDiscount(value)
    raise ValidationException(
        f"Unknown discount type: {discount_type}",
        details={"discount_type": discount_type}
    )


@dataclass(frozen=True)
class PricingResult:
    subtotal: Decimal
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    discount_percent: Decimal
    taxable_amount: Decimal
    cgst_percent: Decimal
    cgst_amount: Decimal
    sgst_percent: Decimal
    sgst_amount: Decimal
    total_tax: Decimal
    grand_total: Decimal

    def as_columns(self) -> dict:
        """Column values for a quotation row"""
        return {
            "subtotal": self.subtotal,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "discount_amount": self.discount_amount,
            "taxable_amount": self.taxable_amount,
            "cgst_percent": self.cgst_percent,
            "cgst_amount": self.cgst_amount,
            "sgst_percent": self.sgst_percent,
            "sgst_amount": self.sgst_amount,
            "total_tax": self.total_tax,
            "grand_total": self.grand_total,
        }


class PricingEngine:
    """Discount validation and GST computation"""

    def __init__(
        self,
        max_discount_percent: Decimal = None,
        default_cgst_percent: Decimal = None,
        default_sgst_percent: Decimal = None,
    ):
        self.max_discount_percent = to_decimal(max_discount_percent, settings.MAX_DISCOUNT_PERCENT)
        self.default_cgst_percent = to_decimal(default_cgst_percent, settings.DEFAULT_CGST_PERCENT)
        self.default_sgst_percent = to_decimal(default_sgst_percent, settings.DEFAULT_SGST_PERCENT)

    @staticmethod
    def line_total(items: Optional[Iterable] = None, total_sqft=None, rate_per_sqft=None) -> Decimal:
        """
        Amount before discount

        Item amounts win when any items are present, otherwise area x rate.
        Items may be mappings or objects exposing ``amount``.
        """
        items = list(items or [])
        if items:
            total = ZERO
            for item in items:
                amount = item.get("amount") if isinstance(item, dict) else getattr(item, "amount", None)
                total += to_decimal(amount)
            return quantize(total)
        return quantize(to_decimal(total_sqft) * to_decimal(rate_per_sqft))

    def effective_discount(self, line_total: Decimal, discount: DiscountSpec):
        """
        Returns (discount_amount, effective_percent)

        Raises DiscountError when the effective percent is above the ceiling.
        """
        if isinstance(discount, NoDiscount) or discount.value <= 0:
            return ZERO, ZERO

        if isinstance(discount, PercentageDiscount):
            percent = discount.value
            amount = line_total * discount.value / HUNDRED
        else:
            amount = discount.value
            if line_total > 0:
                percent = discount.value / line_total * HUNDRED
            else:
                # any flat discount on nothing is more than the ceiling allows
                percent = Decimal("Infinity")

        if percent > self.max_discount_percent:
            raise DiscountError(percent, self.max_discount_percent)

        return quantize(amount), percent

    def compute(
        self,
        line_total,
        discount: DiscountSpec = None,
        cgst_percent=None,
        sgst_percent=None,
    ) -> PricingResult:
        """Full breakdown; ``None`` tax percents fall back to the defaults, 0 is kept"""
        discount = discount or NoDiscount()
        subtotal = quantize(to_decimal(line_total))

        discount_amount, discount_percent = self.effective_discount(subtotal, discount)
        taxable = subtotal - discount_amount

        cgst_percent = to_decimal(cgst_percent, self.default_cgst_percent)
        sgst_percent = to_decimal(sgst_percent, self.default_sgst_percent)
        cgst_amount = quantize(taxable * cgst_percent / HUNDRED)
        sgst_amount = quantize(taxable * sgst_percent / HUNDRED)
        total_tax = cgst_amount + sgst_amount

        return PricingResult(
            subtotal=subtotal,
            discount_type=discount.kind,
            discount_value=discount.value,
            discount_amount=discount_amount,
            discount_percent=discount_percent,
            taxable_amount=taxable,
            cgst_percent=cgst_percent,
            cgst_amount=cgst_amount,
            sgst_percent=sgst_percent,
            sgst_amount=sgst_amount,
            total_tax=total_tax,
            grand_total=taxable + total_tax,
        )


pricing_engine = PricingEngine()


def compute_pricing(line_total, discount: DiscountSpec = None, cgst_percent=None, sgst_percent=None) -> PricingResult:
    return pricing_engine.compute(line_total, discount, cgst_percent, sgst_percent)
