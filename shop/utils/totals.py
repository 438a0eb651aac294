# shop/utils/totals.py
from decimal import Decimal
from typing import Any, Iterable, Mapping

_PRICE_KEYS = ("unit_price", "unitPrice", "price")


def _field(item: Any, *names: str):
    for name in names:
        if isinstance(item, Mapping):
            value = item.get(name)
        else:
            value = getattr(item, name, None)
        if value is not None:
            return value
    return None


def _as_decimal(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def calculate_totals(items: Iterable[Any] | None = None) -> dict[str, Decimal]:
    """Sum ``quantity * unit_price`` over line items.

    Lines may be mappings or objects (ORM rows, dataclasses, schemas).
    Missing quantities or prices count as zero so partially populated
    cart and order views can be totalled as well. There is no tax or
    discount layer, ``total`` always equals ``subtotal``.
    """
    subtotal = Decimal("0.00")
    for item in items or ():
        quantity = _as_decimal(_field(item, "quantity"))
        unit_price = _as_decimal(_field(item, *_PRICE_KEYS))
        subtotal += quantity * unit_price

    return {"subtotal": subtotal, "total": subtotal}
