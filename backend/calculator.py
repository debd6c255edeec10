"""Earnings calculation for logged work events."""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from models import IndividualType, RecordMode

CENT = Decimal("0.01")

PARCEL_RATE = Decimal("1.00")
COLLECTION_RATE = Decimal("0.80")
AREA_SINGLE_ID_VALUE = Decimal("180.00")

# (inclusive upper bound on quantity, value, breakdown); None means unbounded
AREA_TWO_ID_TIERS = (
    (149, Decimal("260.00"), "Daily (2 IDs, <150 unid.)"),
    (250, Decimal("300.00"), "Daily (2 IDs, 150-250 unid.)"),
    (None, Decimal("360.00"), "Daily (2 IDs, >250 unid.)"),
)


@dataclass(frozen=True)
class CalculationResult:
    value: Decimal
    breakdown: str


def to_money(value) -> Decimal:
    """Quantize any numeric value to the cent."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_earnings(
    mode: RecordMode,
    quantity: int,
    individual_type: IndividualType | None = None,
    area_id_count: int = 1,
) -> CalculationResult:
    """
    Compute the value of one work event.

    Negative quantities are clamped to zero. Individual events are paid per
    unit (collections at £0.80, everything else at the £1.00 parcel rate).
    Area events pay £180 flat for one route id, or a tier picked by quantity
    for two route ids.
    """
    qty = max(0, quantity)

    if mode == RecordMode.INDIVIDUAL:
        if individual_type == IndividualType.COLLECTION:
            return CalculationResult(
                value=to_money(qty * COLLECTION_RATE),
                breakdown=f"{qty} coletas × £0.80",
            )
        return CalculationResult(
            value=to_money(qty * PARCEL_RATE),
            breakdown=f"{qty} parcelas × £1.00",
        )

    if area_id_count == 1:
        return CalculationResult(
            value=AREA_SINGLE_ID_VALUE,
            breakdown="Daily (1 ID) - Valor Fixo",
        )

    for upper, value, breakdown in AREA_TWO_ID_TIERS:
        if upper is None or qty <= upper:
            return CalculationResult(value=value, breakdown=breakdown)


def preview_total(
    mode: RecordMode,
    qty_parcel: int,
    qty_collection: int = 0,
    area_id_count: int = 1,
) -> Decimal:
    """Total shown on the new-record form before it is submitted."""
    if mode == RecordMode.INDIVIDUAL:
        parcels = calculate_earnings(RecordMode.INDIVIDUAL, qty_parcel, IndividualType.PARCEL)
        collections = calculate_earnings(RecordMode.INDIVIDUAL, qty_collection, IndividualType.COLLECTION)
        return parcels.value + collections.value
    return calculate_earnings(RecordMode.AREA, qty_parcel, None, area_id_count).value


def format_currency(value) -> str:
    """Format a GBP amount the pt-BR way, e.g. ``£ 1.234,56``."""
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    # Swap en-US separators for pt-BR ones
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}£\u00a0{digits}"
